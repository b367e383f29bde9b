"""Shared models, configuration, logging and error handling."""

from shared.models import (
    AccessTier,
    TextContent,
    ToolDescriptor,
    ToolResponse,
)
from shared.config import AppConfig, ConfigError, load_config
from shared.errors import Redactor
from shared.logging import get_logger, setup_logging

__all__ = [
    "AccessTier",
    "TextContent",
    "ToolDescriptor",
    "ToolResponse",
    "AppConfig",
    "ConfigError",
    "load_config",
    "Redactor",
    "get_logger",
    "setup_logging",
]
