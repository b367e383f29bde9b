"""Containers Domain - logs of arbitrary Docker containers on a server."""

from typing import Any

from shared.errors import Redactor
from shared.models import ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import LOG_SEARCH_PROPERTIES, KomodoToolset
from domains.formatters import format_log


class ContainerTools(KomodoToolset):
    """Tools for Docker containers, whether or not Komodo manages them."""

    category = "containers"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_get_container_log",
                "Get logs from any Docker container running on a Komodo Server, "
                "including containers not managed by a Stack or Deployment. "
                "Optionally search for specific terms in the log output.",
                self.get_container_log,
                input_schema=object_schema(
                    {
                        "server": string_property(
                            "Server name or ID where the container is running"
                        ),
                        "container": string_property("Docker container name"),
                        **LOG_SEARCH_PROPERTIES,
                    },
                    ["server", "container"],
                ),
            ),
        ]

    async def get_container_log(self, args: dict[str, Any]) -> ToolResponse:
        server = args["server"]
        container = args["container"]
        terms = args.get("search_terms")
        try:
            if terms:
                log = await self.client.read("SearchContainerLog", {
                    "server": server,
                    "container": container,
                    "terms": terms,
                    "combinator": args.get("search_combinator") or "Or",
                })
            else:
                log = await self.client.read("GetContainerLog", {
                    "server": server,
                    "container": container,
                    "tail": args.get("tail") or 50,
                })
            return self._success(format_log(log))
        except Exception as e:
            return self._error(
                f"getting logs for container '{container}' on server '{server}'", e
            )


def register_container_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Containers domain with the MCP server."""
    return ContainerTools(client, redactor).register(registry)
