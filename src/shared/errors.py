"""Credential redaction and tool error wrapping.

Every error that leaves a tool handler passes through a ``Redactor`` so the
Komodo API key and secret never reach the model, even when a failing request
echoes them back in its message.
"""

import json
import re
from typing import Any, Iterable, Optional

from shared.models import ToolResponse

REDACTED = "[REDACTED]"

# Header value patterns applied after the registered secrets.
# The header name is kept as written, the value (and an auth scheme word) is replaced.
HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(x-api-key:\s*)\S+", re.IGNORECASE),
    re.compile(r"(x-api-secret:\s*)\S+", re.IGNORECASE),
    re.compile(r"(authorization:\s*)(?:(?:bearer|basic|token)\s+)?\S+", re.IGNORECASE),
)


def describe_error(error: Any) -> str:
    """
    Turn any raised value into a human-readable message.

    Exceptions use their string form (or the class name when that is empty),
    mappings and sequences are JSON encoded, objects exposing ``message`` use
    it, anything else goes through ``str()``. Never raises.
    """
    try:
        if isinstance(error, BaseException):
            return str(error) or type(error).__name__
        if isinstance(error, (dict, list, tuple)):
            try:
                return json.dumps(error, default=str)
            except (TypeError, ValueError):
                return repr(error)
        message = getattr(error, "message", None)
        if message is not None:
            return str(message)
        return str(error)
    except Exception:
        return f"<unprintable {type(error).__name__}>"


class Redactor:
    """
    Registry of sensitive strings scrubbed from outbound error text.

    One instance is created by the server entrypoint and handed to the
    client factory (which registers the credentials) and to every toolset.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        self._patterns: list[str] = []
        for secret in secrets:
            self.register(secret)

    def register(self, secret: Optional[str]) -> None:
        """Register a literal secret. Empty values are ignored."""
        if secret:
            self._patterns.append(secret)

    @property
    def patterns(self) -> tuple[str, ...]:
        return tuple(self._patterns)

    def sanitize(self, message: str) -> str:
        """
        Replace every registered secret, then every auth header value.

        Secrets are replaced in registration order. A secret that overlaps the
        ``[REDACTED]`` token or a header label (e.g. a key containing "REDACT"
        or "api-key:") can leave fragments of a later secret in place, and
        sanitizing the output a second time may change it again.
        """
        for secret in self._patterns:
            # literal match, so regex metacharacters in keys are harmless
            message = message.replace(secret, REDACTED)
        for pattern in HEADER_PATTERNS:
            message = pattern.sub(rf"\g<1>{REDACTED}", message)
        return message

    def wrap_error(self, context: str, error: Any) -> ToolResponse:
        """
        Build the error response returned to the model.

        Args:
            context: What the tool was doing, e.g. "listing servers"
            error: Whatever was raised

        Returns:
            An error ToolResponse with text ``Error <context>: <message>``
        """
        message = self.sanitize(describe_error(error))
        return ToolResponse.failure(f"Error {context}: {message}")
