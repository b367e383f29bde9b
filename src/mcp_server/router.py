"""Tool Router for the MCP server.

Routes tool calls to the handler of the registered tool. Handles lookup,
argument validation and the last-resort error boundary so that nothing a
handler does can raise into the protocol layer.
"""

import time
from typing import Any, Optional

from shared.errors import Redactor
from shared.logging import get_logger
from shared.models import ToolResponse
from mcp_server.registry import ToolRegistry

logger = get_logger(__name__)


class ToolRouter:
    """
    Dispatches ``tools/call`` requests.

    Responsibilities:
    - Reject unknown or unexposed tools
    - Validate arguments against the tool's schema
    - Invoke the handler
    - Turn unexpected handler exceptions into sanitized error responses
    """

    def __init__(self, registry: ToolRegistry, redactor: Redactor) -> None:
        self.registry = registry
        self.redactor = redactor

    async def call(
        self,
        tool_name: str,
        arguments: Optional[dict[str, Any]] = None,
    ) -> ToolResponse:
        """
        Execute a tool call.

        Args:
            tool_name: Name of the tool to call
            arguments: Arguments supplied by the client

        Returns:
            The handler's response, or an error response
        """
        arguments = arguments or {}
        start_time = time.perf_counter()

        tool = self.registry.get(tool_name)
        if not tool:
            logger.warning("Unknown tool requested", tool=tool_name)
            return ToolResponse.failure(f"Error: unknown tool '{tool_name}'")

        is_valid, errors = self.registry.validate_input(tool_name, arguments)
        if not is_valid:
            logger.info("Invalid tool arguments", tool=tool_name, errors=errors)
            return ToolResponse.failure(
                f"Error: invalid arguments for {tool_name}: {'; '.join(errors)}"
            )

        try:
            response = await tool.handler(arguments)
        except Exception as e:
            logger.error(
                "Tool handler raised",
                tool=tool_name,
                error_type=type(e).__name__,
                error=self.redactor.sanitize(str(e)),
            )
            response = self.redactor.wrap_error(f"running {tool_name}", e)

        logger.debug(
            "Tool call finished",
            tool=tool_name,
            is_error=response.is_error,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response
