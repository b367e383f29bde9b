"""Resource Syncs Domain - GitOps declarations of Komodo resources.

A ResourceSync reads TOML resource files from a git repository and
reconciles Komodo's resources against them.
"""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import EXECUTE_ANNOTATIONS, KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import (
    format_resource_sync_detail,
    format_resource_sync_list,
    format_update_created,
)

SYNC_SCHEMA = object_schema(
    {"resource_sync": string_property("Resource sync name or ID")}, ["resource_sync"]
)


class ResourceSyncTools(KomodoToolset):
    """Tools for Komodo Resource Syncs."""

    category = "resource-syncs"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_resource_syncs",
                "List all Komodo Resource Syncs. A Resource Sync declares Komodo "
                "resources in TOML files stored in git and keeps Komodo in line "
                "with them. Returns name, state, and repository.",
                self.list_resource_syncs,
                input_schema=tag_filter_schema("resource syncs"),
            ),
            self.tool(
                "komodo_get_resource_sync",
                "Get detailed information about a specific Komodo Resource Sync by "
                "name or ID. Returns last sync time and commit, pending changes, "
                "pending errors, and resource paths.",
                self.get_resource_sync,
                input_schema=SYNC_SCHEMA,
            ),
            self.tool(
                "komodo_trigger_sync",
                "⚠️ RUN a Komodo Resource Sync. Applies the pending changes from "
                "the declared resource files, which may create, update, or delete "
                "Komodo resources.",
                self.trigger_sync,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=SYNC_SCHEMA,
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def list_resource_syncs(self, args: dict[str, Any]) -> ToolResponse:
        try:
            syncs = await self.client.read("ListResourceSyncs", tag_query(args))
            return self._success(format_resource_sync_list(syncs))
        except Exception as e:
            return self._error("listing resource syncs", e)

    async def get_resource_sync(self, args: dict[str, Any]) -> ToolResponse:
        sync = args["resource_sync"]
        try:
            data, state = await self.read_pair(
                "GetResourceSync", "GetResourceSyncActionState", {"sync": sync}
            )
            return self._success(format_resource_sync_detail(data, state))
        except Exception as e:
            return self._error(f"getting resource sync '{sync}'", e)

    async def trigger_sync(self, args: dict[str, Any]) -> ToolResponse:
        sync = args["resource_sync"]
        try:
            update = await self.client.execute("RunSync", {"sync": sync})
            return self._success(
                format_update_created(update, f"Running resource sync '{sync}'")
            )
        except Exception as e:
            return self._error(f"running resource sync '{sync}'", e)


def register_resource_sync_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Resource Syncs domain with the MCP server."""
    return ResourceSyncTools(client, redactor).register(registry)
