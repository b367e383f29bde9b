"""Base class for Komodo domain toolsets.

Each toolset:
- Covers one Komodo resource family (its category)
- Declares its tools as ToolDescriptors
- Translates tool arguments into Komodo API operations
- Renders responses as plain text
- Reports failures as sanitized error responses, never by raising
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from shared.errors import Redactor
from shared.logging import get_logger
from shared.models import AccessTier, ToolDescriptor, ToolHandler, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry

logger = get_logger(__name__)

READ_ANNOTATIONS = {"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True}
EXECUTE_ANNOTATIONS = {"readOnlyHint": False, "destructiveHint": True, "idempotentHint": False}

LOG_SEARCH_PROPERTIES: dict[str, dict[str, Any]] = {
    "tail": {
        "type": "integer",
        "minimum": 1,
        "maximum": 5000,
        "description": "Number of log lines to return (default: 50, max: 5000)",
    },
    "search_terms": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Search for lines matching these terms",
    },
    "search_combinator": string_property(
        "How to combine search terms: 'And' = all terms must match, "
        "'Or' = any term matches (default: 'Or')",
        enum=["And", "Or"],
    ),
}


def tag_query(args: dict[str, Any]) -> dict[str, Any]:
    """List params for the optional ``tag`` argument."""
    tag = args.get("tag")
    return {"query": {"tags": [tag]}} if tag else {}


def tag_filter_schema(noun: str) -> dict[str, Any]:
    return object_schema({"tag": string_property(f"Filter {noun} by tag name")})


class KomodoToolset(ABC):
    """
    Base class for domain toolsets.

    Subclasses set ``category`` and implement ``tools``. Handlers are bound
    methods that receive the validated arguments dict.
    """

    category: str = ""

    def __init__(self, client: KomodoClient, redactor: Redactor) -> None:
        self.client = client
        self.redactor = redactor

    @abstractmethod
    def tools(self) -> list[ToolDescriptor]:
        """Return all tool descriptors for this domain."""

    def tool(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        access_tier: AccessTier = AccessTier.READ_ONLY,
        input_schema: Optional[dict[str, Any]] = None,
        annotations: Optional[dict[str, bool]] = None,
    ) -> ToolDescriptor:
        """Build a descriptor in this toolset's category."""
        if annotations is None and access_tier == AccessTier.READ_ONLY:
            annotations = READ_ANNOTATIONS
        return ToolDescriptor(
            name=name,
            description=description,
            access_tier=access_tier,
            category=self.category,
            input_schema=input_schema,
            annotations=annotations or {},
            handler=handler,
        )

    def register(self, registry: ToolRegistry) -> int:
        """Offer every tool to the registry and return how many were exposed."""
        tools = self.tools()
        count = registry.register_many(tools)
        logger.info(
            "Domain registered",
            category=self.category,
            tool_count=count,
            skipped=len(tools) - count,
        )
        return count

    async def read_pair(
        self,
        operation: str,
        second_operation: str,
        params: dict[str, Any],
    ) -> list[Any]:
        """Run two reads concurrently. Fails if either fails."""
        return await asyncio.gather(
            self.client.read(operation, params),
            self.client.read(second_operation, params),
        )

    def _success(self, text: str) -> ToolResponse:
        return ToolResponse.success(text)

    def _json(self, data: Any) -> ToolResponse:
        """Pretty-printed JSON, used only for raw container inspection."""
        return ToolResponse.success(json.dumps(data, indent=2))

    def _invalid(self, message: str) -> ToolResponse:
        """Argument problem caught before any API call."""
        return ToolResponse.failure(f"Error: {message}")

    def _error(self, context: str, error: Exception) -> ToolResponse:
        logger.debug(
            "Komodo call failed",
            category=self.category,
            context=context,
            error_type=type(error).__name__,
        )
        return self.redactor.wrap_error(context, error)
