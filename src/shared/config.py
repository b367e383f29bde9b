"""Configuration management for the Komodo MCP server.

Connection settings come from a single snapshot of the process environment
and are parsed once at startup. Transport settings use pydantic-settings.
"""

import os
from functools import lru_cache
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models import AccessTier

REQUIRED_VARIABLES = ("KOMODO_URL", "KOMODO_API_KEY", "KOMODO_API_SECRET")


class ConfigError(ValueError):
    """Raised when required environment variables are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing required environment variables: {', '.join(missing)}. "
            "Set these variables to connect to your Komodo instance."
        )


class AppConfig(BaseModel):
    """Validated, immutable server configuration."""
    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Komodo Core base URL without trailing slash")
    api_key: SecretStr
    api_secret: SecretStr
    access_tier: AccessTier = Field(default=AccessTier.FULL)
    categories: Optional[frozenset[str]] = Field(
        default=None,
        description="Category allowlist; None means every category"
    )
    debug: bool = Field(default=False)


def parse_access_tier(value: Optional[str]) -> AccessTier:
    """Only the two restricted tiers are recognized; anything else is full access."""
    if value == AccessTier.READ_ONLY.value:
        return AccessTier.READ_ONLY
    if value == AccessTier.READ_EXECUTE.value:
        return AccessTier.READ_EXECUTE
    return AccessTier.FULL


def parse_categories(value: Optional[str]) -> Optional[frozenset[str]]:
    if not value:
        return None
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build the server configuration from an environment snapshot.

    Args:
        environ: Variables to read (defaults to ``os.environ``)

    Returns:
        The parsed AppConfig

    Raises:
        ConfigError: If any required variable is missing or empty, listing all of them
    """
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
    if missing:
        raise ConfigError(missing)

    return AppConfig(
        url=env["KOMODO_URL"].rstrip("/"),
        api_key=env["KOMODO_API_KEY"],
        api_secret=env["KOMODO_API_SECRET"],
        access_tier=parse_access_tier(env.get("KOMODO_ACCESS_TIER")),
        categories=parse_categories(env.get("KOMODO_CATEGORIES")),
        debug=bool(env.get("DEBUG")),
    )


class TransportSettings(BaseSettings):
    """How the MCP server is exposed."""
    transport: Literal["stdio", "http"] = Field(default="stdio")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, gt=0, lt=65536)

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        extra="ignore"
    )


@lru_cache
def get_transport_settings() -> TransportSettings:
    """Get cached transport settings."""
    return TransportSettings()
