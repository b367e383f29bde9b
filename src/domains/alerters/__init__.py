"""Alerters Domain - alert delivery endpoints (Slack, Discord, custom)."""

from typing import Any

from shared.errors import Redactor
from shared.models import ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import format_alerter_detail, format_alerter_list


class AlerterTools(KomodoToolset):
    """Tools for Komodo Alerters."""

    category = "alerters"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_alerters",
                "List all Komodo Alerters. An Alerter sends notifications about "
                "server and resource alerts to an endpoint such as Slack, Discord, "
                "or a custom webhook. Returns name, endpoint type, and enabled state.",
                self.list_alerters,
                input_schema=tag_filter_schema("alerters"),
            ),
            self.tool(
                "komodo_get_alerter",
                "Get detailed information about a specific Komodo Alerter by name "
                "or ID. Returns whether it is enabled and its endpoint type.",
                self.get_alerter,
                input_schema=object_schema(
                    {"alerter": string_property("Alerter name or ID")}, ["alerter"]
                ),
            ),
        ]

    async def list_alerters(self, args: dict[str, Any]) -> ToolResponse:
        try:
            alerters = await self.client.read("ListAlerters", tag_query(args))
            return self._success(format_alerter_list(alerters))
        except Exception as e:
            return self._error("listing alerters", e)

    async def get_alerter(self, args: dict[str, Any]) -> ToolResponse:
        alerter = args["alerter"]
        try:
            data = await self.client.read("GetAlerter", {"alerter": alerter})
            return self._success(format_alerter_detail(data))
        except Exception as e:
            return self._error(f"getting alerter '{alerter}'", e)


def register_alerter_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Alerters domain with the MCP server."""
    return AlerterTools(client, redactor).register(registry)
