"""Updates Domain - the operation history of a Komodo instance.

Every execute call creates an Update record; these tools page through the
history and show the logs of a single operation.
"""

from typing import Any

from shared.errors import Redactor
from shared.models import ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import KomodoToolset
from domains.formatters import format_update_detail, format_update_list

TARGET_TYPES = [
    "Server", "Stack", "Deployment", "Build", "Repo",
    "Procedure", "Action", "Builder", "Alerter", "ResourceSync",
]


def build_update_query(args: dict[str, Any]) -> dict[str, Any]:
    """Translate the optional filters into a ListUpdates query."""
    query: dict[str, Any] = {}
    if args.get("target_type"):
        query["target.type"] = args["target_type"]
    if args.get("target_id"):
        query["target.id"] = args["target_id"]
    if args.get("operation"):
        query["operation"] = args["operation"]
    if args.get("success") is not None:
        query["success"] = args["success"]
    return query


class UpdateTools(KomodoToolset):
    """Tools for Komodo Updates."""

    category = "updates"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_updates",
                "List recent Komodo Updates (operation records), newest first. "
                "Every deploy, build, sync, or other execution creates an Update. "
                "Filter by resource type, resource, operation, or outcome.",
                self.list_updates,
                input_schema=object_schema({
                    "target_type": string_property(
                        "Filter by resource type (e.g. 'Stack', 'Deployment')",
                        enum=TARGET_TYPES,
                    ),
                    "target_id": string_property("Filter by resource name or ID"),
                    "operation": string_property(
                        "Filter by operation name (e.g. 'DeployStack', 'Deploy', "
                        "'RunBuild', 'StartStack', 'PullStack')"
                    ),
                    "success": {
                        "type": "boolean",
                        "description": "Filter by success status (true = succeeded, false = failed)",
                    },
                    "page": {
                        "type": "integer",
                        "minimum": 0,
                        "description": "Page number for pagination (0 = most recent). Use the "
                                       "page value from a previous response to get more results.",
                    },
                }),
            ),
            self.tool(
                "komodo_get_update",
                "Get detailed information about a specific Komodo Update by ID. "
                "Returns status, success, operator, timestamps, and the complete "
                "execution logs with stdout/stderr for each stage. Use this to check "
                "deploy results, diagnose failures, or monitor running operations.",
                self.get_update,
                input_schema=object_schema(
                    {"id": string_property(
                        "Update ID (returned by execute operations or komodo_list_updates)"
                    )},
                    ["id"],
                ),
            ),
        ]

    async def list_updates(self, args: dict[str, Any]) -> ToolResponse:
        params: dict[str, Any] = {"page": args.get("page") or 0}
        query = build_update_query(args)
        if query:
            params["query"] = query
        try:
            response = await self.client.read("ListUpdates", params)
            return self._success(format_update_list(
                response.get("updates") or [], response.get("next_page")
            ))
        except Exception as e:
            return self._error("listing updates", e)

    async def get_update(self, args: dict[str, Any]) -> ToolResponse:
        update_id = args["id"]
        try:
            update = await self.client.read("GetUpdate", {"id": update_id})
            return self._success(format_update_detail(update))
        except Exception as e:
            return self._error(f"getting update '{update_id}'", e)


def register_update_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Updates domain with the MCP server."""
    return UpdateTools(client, redactor).register(registry)
