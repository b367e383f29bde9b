"""Servers Domain - Komodo Server resources.

A Server is a remote machine managed by Komodo's Periphery agent.
Provides listing, details, live stats, system info and Docker cleanup.
"""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import (
    format_process_list,
    format_server_detail,
    format_server_list,
    format_system_info,
    format_system_stats,
    format_update_created,
)

SERVER_SCHEMA = object_schema({"server": string_property("Server name or ID")}, ["server"])

PRUNE_OPERATIONS = {
    "containers": "PruneContainers",
    "images": "PruneImages",
    "volumes": "PruneVolumes",
    "networks": "PruneNetworks",
    "buildx": "PruneBuildx",
    "system": "PruneSystem",
}

DELETE_OPERATIONS = {
    "image": "DeleteImage",
    "volume": "DeleteVolume",
    "network": "DeleteNetwork",
}


class ServerTools(KomodoToolset):
    """Tools for Komodo Servers."""

    category = "servers"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_servers",
                "List all Komodo Servers. A Server is a remote machine managed "
                "by Komodo's Periphery agent. Returns name, status, and region "
                "for each server.",
                self.list_servers,
                input_schema=tag_filter_schema("servers"),
            ),
            self.tool(
                "komodo_get_server",
                "Get detailed information about a specific Komodo Server by name "
                "or ID. Returns configuration, status, region, and current action state.",
                self.get_server,
                input_schema=SERVER_SCHEMA,
            ),
            self.tool(
                "komodo_get_server_stats",
                "Get current resource usage statistics for a Komodo Server. "
                "Returns CPU percentage, memory usage, disk usage, and system "
                "load averages.",
                self.get_server_stats,
                input_schema=SERVER_SCHEMA,
            ),
            self.tool(
                "komodo_get_server_info",
                "Get system information and running processes for a Komodo Server. "
                "Returns OS details, hardware info, and the most active processes "
                "sorted by CPU usage.",
                self.get_server_info,
                input_schema=SERVER_SCHEMA,
            ),
            self.tool(
                "komodo_prune_docker",
                "⚠️ PRUNE unused Docker resources on a specific Komodo Server. "
                "Removes stopped containers, dangling images, unused volumes, or "
                "unused networks depending on the resource type chosen. Deleted "
                "resources CANNOT BE RECOVERED.",
                self.prune_docker,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "server": string_property("Server name or ID to prune resources on"),
                        "resource_type": string_property(
                            "Type of Docker resources to prune: 'containers' (stopped), "
                            "'images' (dangling/untagged), 'volumes' (not attached), "
                            "'networks' (unused), 'buildx' (build cache), "
                            "'system' (all of the above)",
                            enum=list(PRUNE_OPERATIONS),
                        ),
                    },
                    ["server", "resource_type"],
                ),
                annotations={"readOnlyHint": False, "destructiveHint": True, "idempotentHint": True},
            ),
            self.tool(
                "komodo_delete_docker_resource",
                "⚠️ DELETE a specific Docker image, volume, or network on a Komodo "
                "Server by name. This is permanent and cannot be undone.",
                self.delete_docker_resource,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "server": string_property("Server name or ID"),
                        "resource_type": string_property(
                            "Type of Docker resource to delete",
                            enum=list(DELETE_OPERATIONS),
                        ),
                        "name": string_property(
                            "Name of the image, volume, or network to delete"
                        ),
                    },
                    ["server", "resource_type", "name"],
                ),
                annotations={"readOnlyHint": False, "destructiveHint": True, "idempotentHint": True},
            ),
        ]

    async def list_servers(self, args: dict[str, Any]) -> ToolResponse:
        try:
            servers = await self.client.read("ListServers", tag_query(args))
            return self._success(format_server_list(servers))
        except Exception as e:
            return self._error("listing servers", e)

    async def get_server(self, args: dict[str, Any]) -> ToolResponse:
        server = args["server"]
        try:
            data, state = await self.read_pair(
                "GetServer", "GetServerActionState", {"server": server}
            )
            return self._success(format_server_detail(data, state))
        except Exception as e:
            return self._error(f"getting server '{server}'", e)

    async def get_server_stats(self, args: dict[str, Any]) -> ToolResponse:
        server = args["server"]
        try:
            stats = await self.client.read("GetSystemStats", {"server": server})
            return self._success(format_system_stats(stats))
        except Exception as e:
            return self._error(f"getting stats for server '{server}'", e)

    async def get_server_info(self, args: dict[str, Any]) -> ToolResponse:
        server = args["server"]
        try:
            info, processes = await self.read_pair(
                "GetSystemInformation", "ListSystemProcesses", {"server": server}
            )
            return self._success(
                f"{format_system_info(info)}\n\n{format_process_list(processes)}"
            )
        except Exception as e:
            return self._error(f"getting info for server '{server}'", e)

    async def prune_docker(self, args: dict[str, Any]) -> ToolResponse:
        server = args["server"]
        resource_type = args["resource_type"]
        try:
            update = await self.client.execute(
                PRUNE_OPERATIONS[resource_type], {"server": server}
            )
            return self._success(format_update_created(
                update, f"Pruning {resource_type} on server '{server}'"
            ))
        except Exception as e:
            return self._error(f"pruning {resource_type} on server '{server}'", e)

    async def delete_docker_resource(self, args: dict[str, Any]) -> ToolResponse:
        server = args["server"]
        resource_type = args["resource_type"]
        name = args["name"]
        try:
            update = await self.client.execute(
                DELETE_OPERATIONS[resource_type], {"server": server, "name": name}
            )
            return self._success(format_update_created(
                update, f"Deleting {resource_type} '{name}' on server '{server}'"
            ))
        except Exception as e:
            return self._error(f"deleting {resource_type} '{name}' on server '{server}'", e)


def register_server_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Servers domain with the MCP server."""
    return ServerTools(client, redactor).register(registry)
