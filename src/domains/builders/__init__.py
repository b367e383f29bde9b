"""Builders Domain - where Komodo Builds run."""

from typing import Any

from shared.errors import Redactor
from shared.models import ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import format_builder_detail, format_builder_list


class BuilderTools(KomodoToolset):
    """Tools for Komodo Builders."""

    category = "builders"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_builders",
                "List all Komodo Builders. A Builder is the machine a Build runs "
                "on: an existing Server, a Url to a Periphery agent, or an AWS "
                "instance launched on demand.",
                self.list_builders,
                input_schema=tag_filter_schema("builders"),
            ),
            self.tool(
                "komodo_get_builder",
                "Get detailed information about a specific Komodo Builder by name "
                "or ID. Returns builder type and its server or instance settings.",
                self.get_builder,
                input_schema=object_schema(
                    {"builder": string_property("Builder name or ID")}, ["builder"]
                ),
            ),
        ]

    async def list_builders(self, args: dict[str, Any]) -> ToolResponse:
        try:
            builders = await self.client.read("ListBuilders", tag_query(args))
            return self._success(format_builder_list(builders))
        except Exception as e:
            return self._error("listing builders", e)

    async def get_builder(self, args: dict[str, Any]) -> ToolResponse:
        builder = args["builder"]
        try:
            data = await self.client.read("GetBuilder", {"builder": builder})
            return self._success(format_builder_detail(data))
        except Exception as e:
            return self._error(f"getting builder '{builder}'", e)


def register_builder_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Builders domain with the MCP server."""
    return BuilderTools(client, redactor).register(registry)
