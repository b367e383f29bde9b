"""Core data models for the Komodo MCP server.

Access tiers, tool descriptors and the text-only response envelope shared
by the registry, the router and every domain toolset.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AccessTier(str, Enum):
    """Ordered permission level: read-only < read-execute < full."""
    READ_ONLY = "read-only"
    READ_EXECUTE = "read-execute"
    FULL = "full"

    @property
    def rank(self) -> int:
        return _TIER_RANKS[self]

    def allows(self, required: "AccessTier") -> bool:
        """True when a server at this tier may expose a tool requiring ``required``."""
        return self.rank >= required.rank


_TIER_RANKS = {
    AccessTier.READ_ONLY: 0,
    AccessTier.READ_EXECUTE: 1,
    AccessTier.FULL: 2,
}


class TextContent(BaseModel):
    """A single text block of a tool response."""
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """
    Result of a tool invocation.

    Responses are always human-readable text. ``is_error`` marks failures
    that are reported to the model instead of being raised.
    """
    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> "ToolResponse":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def failure(cls, text: str) -> "ToolResponse":
        return cls(content=[TextContent(text=text)], is_error=True)

    @property
    def text(self) -> str:
        """Concatenated text of all content blocks."""
        return "\n".join(block.text for block in self.content)

    def to_wire(self) -> dict[str, Any]:
        """Protocol shape: ``isError`` only appears on failures."""
        data: dict[str, Any] = {
            "content": [block.model_dump() for block in self.content]
        }
        if self.is_error:
            data["isError"] = True
        return data


ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolResponse]]


class ToolDescriptor(BaseModel):
    """
    Declarative definition of one MCP tool.

    ``access_tier`` is the minimum server tier that exposes the tool and
    ``category`` is matched against the optional category allowlist.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Unique tool name, e.g. komodo_list_servers")
    description: str = Field(..., description="Description shown to the model")
    access_tier: AccessTier
    category: str
    input_schema: Optional[dict[str, Any]] = Field(
        default=None,
        description="JSON Schema for the tool arguments"
    )
    annotations: dict[str, bool] = Field(
        default_factory=dict,
        description="Behavioral hints overriding the tier defaults"
    )
    handler: ToolHandler


class HealthResponse(BaseModel):
    """Health check response for the HTTP transport."""
    status: str = "healthy"
    version: str
    access_tier: AccessTier
    tool_count: int
    categories: list[str] = Field(default_factory=list)
