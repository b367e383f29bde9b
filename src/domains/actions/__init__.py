"""Actions Domain - user-defined TypeScript scripts run by Komodo."""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import EXECUTE_ANNOTATIONS, KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import format_action_detail, format_action_list, format_update_created

ACTION_SCHEMA = object_schema({"action": string_property("Action name or ID")}, ["action"])


class ActionTools(KomodoToolset):
    """Tools for Komodo Actions."""

    category = "actions"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_actions",
                "List all Komodo Actions. An Action is a script that runs against "
                "the Komodo API, on demand, on a schedule, or from a webhook. "
                "Returns name, state, and last run time.",
                self.list_actions,
                input_schema=tag_filter_schema("actions"),
            ),
            self.tool(
                "komodo_get_action",
                "Get detailed information about a specific Komodo Action by name or "
                "ID. Returns schedule, webhook and startup settings, and how many "
                "instances are currently running.",
                self.get_action,
                input_schema=ACTION_SCHEMA,
            ),
            self.tool(
                "komodo_run_action",
                "⚠️ RUN a Komodo Action. The script may perform any operation its "
                "author wrote, including deploys and deletions.",
                self.run_action,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=ACTION_SCHEMA,
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def list_actions(self, args: dict[str, Any]) -> ToolResponse:
        try:
            actions = await self.client.read("ListActions", tag_query(args))
            return self._success(format_action_list(actions))
        except Exception as e:
            return self._error("listing actions", e)

    async def get_action(self, args: dict[str, Any]) -> ToolResponse:
        action = args["action"]
        try:
            data, state = await self.read_pair(
                "GetAction", "GetActionActionState", {"action": action}
            )
            return self._success(format_action_detail(data, state))
        except Exception as e:
            return self._error(f"getting action '{action}'", e)

    async def run_action(self, args: dict[str, Any]) -> ToolResponse:
        action = args["action"]
        try:
            update = await self.client.execute("RunAction", {"action": action})
            return self._success(format_update_created(update, f"Running action '{action}'"))
        except Exception as e:
            return self._error(f"running action '{action}'", e)


def register_action_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Actions domain with the MCP server."""
    return ActionTools(client, redactor).register(registry)
