"""Tool Registry for the MCP server.

The registry is the access-tier gate: every tool passes through
``register`` at startup and only tools allowed by the configured tier and
category allowlist are ever exposed to clients.
"""

from typing import Any, Iterable, Optional

import mcp.types as types

from shared.config import AppConfig
from shared.logging import get_logger
from shared.models import AccessTier, ToolDescriptor
from shared.schema import EMPTY_OBJECT_SCHEMA, validate_schema

logger = get_logger(__name__)


def default_annotations(descriptor: ToolDescriptor) -> dict[str, bool]:
    """Tier defaults merged with the descriptor's own hints (which win)."""
    return {
        "readOnlyHint": descriptor.access_tier == AccessTier.READ_ONLY,
        "destructiveHint": False,
        **descriptor.annotations,
    }


class ToolRegistry:
    """
    Registry of the tools this server exposes.

    Responsibilities:
    - Filter tools by access tier and category at registration
    - Fill in behavioral annotations
    - Lookup and list registered tools
    - Validate tool arguments against their schemas
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._tools: dict[str, ToolDescriptor] = {}
        self._categories: set[str] = set()

    def register(self, descriptor: ToolDescriptor) -> bool:
        """
        Register a tool if the server configuration allows it.

        Args:
            descriptor: Tool descriptor to register

        Returns:
            True if the tool is now exposed, False if it was skipped
        """
        if not self.config.access_tier.allows(descriptor.access_tier):
            logger.debug(
                "Tool skipped",
                tool=descriptor.name,
                reason="access tier",
                required=descriptor.access_tier.value,
                configured=self.config.access_tier.value,
            )
            return False

        categories = self.config.categories
        if categories is not None and descriptor.category not in categories:
            logger.debug(
                "Tool skipped",
                tool=descriptor.name,
                reason="category",
                category=descriptor.category,
            )
            return False

        if descriptor.name in self._tools:
            logger.error("Tool already registered", tool=descriptor.name)
            return False

        self._tools[descriptor.name] = descriptor.model_copy(
            update={"annotations": default_annotations(descriptor)}
        )
        self._categories.add(descriptor.category)

        logger.debug(
            "Tool registered",
            tool=descriptor.name,
            category=descriptor.category,
            access_tier=descriptor.access_tier.value,
        )
        return True

    def register_many(self, descriptors: Iterable[ToolDescriptor]) -> int:
        """Register several tools, returning how many were exposed."""
        return sum(1 for descriptor in descriptors if self.register(descriptor))

    def get(self, tool_name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(tool_name)

    def list_tools(self, category: Optional[str] = None) -> list[ToolDescriptor]:
        """List registered tools, optionally filtered by category."""
        tools = list(self._tools.values())
        if category:
            tools = [t for t in tools if t.category == category]
        return tools

    def list_categories(self) -> list[str]:
        """List categories with at least one registered tool."""
        return sorted(self._categories)

    def get_tool_count(self) -> dict[str, int]:
        """Get count of tools per category."""
        counts: dict[str, int] = {}
        for tool in self._tools.values():
            counts[tool.category] = counts.get(tool.category, 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._tools

    def validate_input(
        self,
        tool_name: str,
        arguments: dict[str, Any]
    ) -> tuple[bool, list[str]]:
        """
        Validate call arguments against the tool's input schema.

        Args:
            tool_name: Registered tool name
            arguments: Arguments supplied by the client

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        tool = self.get(tool_name)
        if not tool:
            return False, [f"Tool '{tool_name}' not found"]

        if not tool.input_schema:
            return True, []

        return validate_schema(arguments, tool.input_schema)

    def to_mcp_tools(self) -> list[types.Tool]:
        """Registered tools in the MCP ``tools/list`` format."""
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema or EMPTY_OBJECT_SCHEMA,
                annotations=types.ToolAnnotations(**tool.annotations),
            )
            for tool in self._tools.values()
        ]
