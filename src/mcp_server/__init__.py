"""MCP Server - Komodo client, access-tier gate and call routing.

The server registers only the tools the configured access tier and
category allowlist permit, routes calls to domain handlers, and never
lets a credential appear in an error message.
"""

__version__ = "0.1.0"

from mcp_server.client import KomodoAPIError, KomodoClient, create_client
from mcp_server.registry import ToolRegistry
from mcp_server.router import ToolRouter

__all__ = [
    "__version__",
    "KomodoAPIError",
    "KomodoClient",
    "create_client",
    "ToolRegistry",
    "ToolRouter",
]
