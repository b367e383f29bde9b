"""Stacks Domain - Docker Compose deployments.

A Stack is a multi-container deployment defined by a Docker Compose file,
deployed to a specific server.
"""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_list_property, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import (
    EXECUTE_ANNOTATIONS,
    LOG_SEARCH_PROPERTIES,
    KomodoToolset,
    tag_filter_schema,
    tag_query,
)
from domains.formatters import (
    format_log,
    format_stack_detail,
    format_stack_list,
    format_stack_service_list,
    format_stacks_summary,
    format_update_created,
)

STACK_PROPERTY = string_property("Stack name or ID")

LIFECYCLE_OPERATIONS = {
    "start": "StartStack",
    "stop": "StopStack",
    "restart": "RestartStack",
    "pause": "PauseStack",
    "unpause": "UnpauseStack",
}


class StackTools(KomodoToolset):
    """Tools for Komodo Stacks."""

    category = "stacks"

    def tools(self) -> list[ToolDescriptor]:
        stack_only = object_schema({"stack": STACK_PROPERTY}, ["stack"])
        return [
            self.tool(
                "komodo_list_stacks",
                "List all Komodo Stacks. A Stack is a multi-container deployment "
                "defined by a Docker Compose file, deployed to a specific server. "
                "Returns name, state, server, and service count for each stack.",
                self.list_stacks,
                input_schema=tag_filter_schema("stacks"),
            ),
            self.tool(
                "komodo_get_stack",
                "Get detailed information about a specific Komodo Stack by name "
                "or ID. Returns configuration, state, git repo info, and current "
                "action state.",
                self.get_stack,
                input_schema=stack_only,
            ),
            self.tool(
                "komodo_get_stack_log",
                "Get logs from a Komodo Stack's Docker Compose services. Optionally "
                "search for specific terms in the log output. Returns the most "
                "recent log lines from all or specified services.",
                self.get_stack_log,
                input_schema=object_schema(
                    {
                        "stack": STACK_PROPERTY,
                        "services": string_list_property(
                            "Filter to specific service names (default: all services)"
                        ),
                        **LOG_SEARCH_PROPERTIES,
                    },
                    ["stack"],
                ),
            ),
            self.tool(
                "komodo_inspect_stack_container",
                "Inspect the Docker container for a specific service within a Stack. "
                "Returns the full container state including configuration, mounts, "
                "network settings, and runtime status (equivalent to docker inspect).",
                self.inspect_stack_container,
                input_schema=object_schema(
                    {
                        "stack": STACK_PROPERTY,
                        "service": string_property("Service name within the stack to inspect"),
                    },
                    ["stack", "service"],
                ),
            ),
            self.tool(
                "komodo_list_stack_services",
                "List all services in a Komodo Stack. Returns the service name, "
                "Docker image, container state, and whether an image update is "
                "available for each service in the Compose file.",
                self.list_stack_services,
                input_schema=stack_only,
            ),
            self.tool(
                "komodo_get_stacks_summary",
                "Get a summary of all Komodo Stacks. Returns aggregate counts "
                "by state: total, running, stopped, down, unhealthy, and unknown.",
                self.get_stacks_summary,
            ),
            self.tool(
                "komodo_deploy_stack",
                "⚠️ DEPLOY a Komodo Stack. This redeploys the services in the stack, "
                "taking down containers and bringing them back up with the latest "
                "configuration. Services will be briefly unavailable.",
                self.deploy_stack,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "stack": STACK_PROPERTY,
                        "only_if_changed": {
                            "type": "boolean",
                            "description": "Only deploy if the stack configuration has "
                                           "changed since the last deployment. Default: false.",
                        },
                        "services": string_list_property(
                            "Deploy only specific services by name. If omitted or "
                            "empty, all services are deployed."
                        ),
                    },
                    ["stack"],
                ),
                annotations=EXECUTE_ANNOTATIONS,
            ),
            self.tool(
                "komodo_pull_stack",
                "Pull the latest Docker images for a Komodo Stack without "
                "redeploying. Running containers are not restarted.",
                self.pull_stack,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "stack": STACK_PROPERTY,
                        "services": string_list_property(
                            "Pull only specific services by name (default: all services)"
                        ),
                    },
                    ["stack"],
                ),
                annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": True},
            ),
            self.tool(
                "komodo_stack_lifecycle",
                "⚠️ Start, stop, restart, pause, or unpause all services of a "
                "Komodo Stack. Stopping or pausing makes the services unavailable.",
                self.stack_lifecycle,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "stack": STACK_PROPERTY,
                        "action": string_property(
                            "Lifecycle action to perform",
                            enum=list(LIFECYCLE_OPERATIONS),
                        ),
                    },
                    ["stack", "action"],
                ),
                annotations=EXECUTE_ANNOTATIONS,
            ),
            self.tool(
                "komodo_destroy_stack",
                "⚠️ DESTROY a Komodo Stack's containers (docker compose down). "
                "All services stop and their containers are removed. The stack "
                "definition itself is kept and can be deployed again.",
                self.destroy_stack,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=stack_only,
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def list_stacks(self, args: dict[str, Any]) -> ToolResponse:
        try:
            stacks = await self.client.read("ListStacks", tag_query(args))
            return self._success(format_stack_list(stacks))
        except Exception as e:
            return self._error("listing stacks", e)

    async def get_stack(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        try:
            data, state = await self.read_pair(
                "GetStack", "GetStackActionState", {"stack": stack}
            )
            return self._success(format_stack_detail(data, state))
        except Exception as e:
            return self._error(f"getting stack '{stack}'", e)

    async def get_stack_log(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        services = args.get("services") or []
        terms = args.get("search_terms")
        try:
            if terms:
                log = await self.client.read("SearchStackLog", {
                    "stack": stack,
                    "services": services,
                    "terms": terms,
                    "combinator": args.get("search_combinator") or "Or",
                })
            else:
                log = await self.client.read("GetStackLog", {
                    "stack": stack,
                    "services": services,
                    "tail": args.get("tail") or 50,
                })
            return self._success(format_log(log))
        except Exception as e:
            return self._error(f"getting logs for stack '{stack}'", e)

    async def inspect_stack_container(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        service = args["service"]
        try:
            container = await self.client.read(
                "InspectStackContainer", {"stack": stack, "service": service}
            )
            return self._json(container)
        except Exception as e:
            return self._error(
                f"inspecting container for service '{service}' in stack '{stack}'", e
            )

    async def list_stack_services(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        try:
            services = await self.client.read("ListStackServices", {"stack": stack})
            return self._success(format_stack_service_list(services))
        except Exception as e:
            return self._error(f"listing services for stack '{stack}'", e)

    async def get_stacks_summary(self, args: dict[str, Any]) -> ToolResponse:
        try:
            summary = await self.client.read("GetStacksSummary", {})
            return self._success(format_stacks_summary(summary))
        except Exception as e:
            return self._error("getting stacks summary", e)

    async def deploy_stack(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        operation = "DeployStackIfChanged" if args.get("only_if_changed") else "DeployStack"
        try:
            update = await self.client.execute(operation, {
                "stack": stack,
                "services": args.get("services") or [],
            })
            return self._success(format_update_created(update, f"Deploying stack '{stack}'"))
        except Exception as e:
            return self._error(f"deploying stack '{stack}'", e)

    async def pull_stack(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        try:
            update = await self.client.execute("PullStack", {
                "stack": stack,
                "services": args.get("services") or [],
            })
            return self._success(
                format_update_created(update, f"Pulling images for stack '{stack}'")
            )
        except Exception as e:
            return self._error(f"pulling images for stack '{stack}'", e)

    async def stack_lifecycle(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        action = args["action"]
        try:
            update = await self.client.execute(LIFECYCLE_OPERATIONS[action], {"stack": stack})
            return self._success(
                format_update_created(update, f"Running {action} on stack '{stack}'")
            )
        except Exception as e:
            return self._error(f"running {action} on stack '{stack}'", e)

    async def destroy_stack(self, args: dict[str, Any]) -> ToolResponse:
        stack = args["stack"]
        try:
            update = await self.client.execute("DestroyStack", {"stack": stack})
            return self._success(
                format_update_created(update, f"Destroying stack '{stack}' - this is permanent")
            )
        except Exception as e:
            return self._error(f"destroying stack '{stack}'", e)


def register_stack_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Stacks domain with the MCP server."""
    return StackTools(client, redactor).register(registry)
