"""HTTP client for the Komodo Core API.

Komodo exposes three RPC-style endpoints (``/read``, ``/execute`` and
``/write``). Each request is a POST with body ``{"type": <operation>,
"params": {...}}`` authenticated by the ``X-Api-Key`` / ``X-Api-Secret``
headers.
"""

from typing import Any, Optional

import httpx

from shared.config import AppConfig
from shared.errors import Redactor
from shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class KomodoAPIError(Exception):
    """A Komodo API call returned a non-success status."""

    def __init__(self, status_code: int, operation: str, body: Any) -> None:
        self.status_code = status_code
        self.operation = operation
        self.body = body
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if isinstance(self.body, dict):
            message = f"{self.status_code}: {self.body.get('error', self.body)}"
            trace = self.body.get("trace")
            if isinstance(trace, list) and trace:
                message += " | " + " | ".join(str(line) for line in trace)
            return message
        return f"{self.status_code}: {self.body or 'request failed'}"


class KomodoClient:
    """
    Async Komodo API client.

    Use ``create_client`` rather than constructing this directly so the
    credentials are registered for redaction first.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "X-Api-Key": api_key,
                "X-Api-Secret": api_secret,
            },
            transport=transport,
        )

    async def read(self, operation: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("read", operation, params)

    async def execute(self, operation: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("execute", operation, params)

    async def write(self, operation: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("write", operation, params)

    async def _request(
        self,
        endpoint: str,
        operation: str,
        params: Optional[dict[str, Any]],
    ) -> Any:
        """POST one operation and return the decoded JSON body."""
        logger.debug("Komodo request", endpoint=endpoint, operation=operation)
        response = await self._client.post(
            f"/{endpoint}",
            json={"type": operation, "params": params or {}},
        )

        if response.is_error:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            raise KomodoAPIError(response.status_code, operation, body)

        if not response.content:
            return None
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "KomodoClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def create_client(
    config: AppConfig,
    redactor: Redactor,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> KomodoClient:
    """
    Register the credentials for redaction, then build the client.

    The registration happens before any request can fail, so no error text
    produced by this client can carry the raw key or secret.
    """
    api_key = config.api_key.get_secret_value()
    api_secret = config.api_secret.get_secret_value()
    redactor.register(api_key)
    redactor.register(api_secret)

    return KomodoClient(
        config.url,
        api_key,
        api_secret,
        timeout=timeout,
        transport=transport,
    )


async def validate_connection(client: KomodoClient) -> str:
    """Check the Komodo instance is reachable and return its version."""
    response = await client.read("GetVersion", {})
    version = response.get("version", "unknown") if isinstance(response, dict) else "unknown"
    logger.info("Connected to Komodo", url=client.base_url, version=version)
    return version
