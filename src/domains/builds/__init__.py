"""Builds Domain - Docker image builds from a git repository."""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import EXECUTE_ANNOTATIONS, KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import format_build_detail, format_build_list, format_update_created

BUILD_SCHEMA = object_schema({"build": string_property("Build name or ID")}, ["build"])


class BuildTools(KomodoToolset):
    """Tools for Komodo Builds."""

    category = "builds"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_builds",
                "List all Komodo Builds. A Build produces a versioned Docker image "
                "from a git repository. Returns name, state, version, and repo "
                "for each build.",
                self.list_builds,
                input_schema=tag_filter_schema("builds"),
            ),
            self.tool(
                "komodo_get_build",
                "Get detailed information about a specific Komodo Build by name or "
                "ID. Returns configuration, version, last build time, commit "
                "hashes, and whether a build is currently running.",
                self.get_build,
                input_schema=BUILD_SCHEMA,
            ),
            self.tool(
                "komodo_run_build",
                "RUN a Komodo Build. Builds a new Docker image from the configured "
                "repository and pushes it to the registry. Builds can take minutes; "
                "use komodo_get_update to follow progress.",
                self.run_build,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=BUILD_SCHEMA,
                annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": False},
            ),
            self.tool(
                "komodo_cancel_build",
                "⚠️ CANCEL a running Komodo Build. The in-progress build is "
                "stopped and no image is produced.",
                self.cancel_build,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=BUILD_SCHEMA,
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def list_builds(self, args: dict[str, Any]) -> ToolResponse:
        try:
            builds = await self.client.read("ListBuilds", tag_query(args))
            return self._success(format_build_list(builds))
        except Exception as e:
            return self._error("listing builds", e)

    async def get_build(self, args: dict[str, Any]) -> ToolResponse:
        build = args["build"]
        try:
            data, state = await self.read_pair(
                "GetBuild", "GetBuildActionState", {"build": build}
            )
            return self._success(format_build_detail(data, state))
        except Exception as e:
            return self._error(f"getting build '{build}'", e)

    async def run_build(self, args: dict[str, Any]) -> ToolResponse:
        build = args["build"]
        try:
            update = await self.client.execute("RunBuild", {"build": build})
            return self._success(format_update_created(update, f"Running build '{build}'"))
        except Exception as e:
            return self._error(f"running build '{build}'", e)

    async def cancel_build(self, args: dict[str, Any]) -> ToolResponse:
        build = args["build"]
        try:
            update = await self.client.execute("CancelBuild", {"build": build})
            return self._success(format_update_created(update, f"Cancelling build '{build}'"))
        except Exception as e:
            return self._error(f"cancelling build '{build}'", e)


def register_build_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Builds domain with the MCP server."""
    return BuildTools(client, redactor).register(registry)
