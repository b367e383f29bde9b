"""Deployments Domain - single-container deployments.

A Deployment is a single Docker container managed by Komodo, deployed to
a specific server.
"""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
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
    format_deployment_detail,
    format_deployment_list,
    format_deployments_summary,
    format_log,
    format_update_created,
)

DEPLOYMENT_SCHEMA = object_schema(
    {"deployment": string_property("Deployment name or ID")}, ["deployment"]
)

LIFECYCLE_OPERATIONS = {
    "start": "StartDeployment",
    "stop": "StopDeployment",
    "restart": "RestartDeployment",
    "pause": "PauseDeployment",
    "unpause": "UnpauseDeployment",
}


class DeploymentTools(KomodoToolset):
    """Tools for Komodo Deployments."""

    category = "deployments"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_deployments",
                "List all Komodo Deployments. A Deployment is a single Docker "
                "container managed by Komodo, deployed to a specific server. "
                "Returns name, state, image, and server for each deployment.",
                self.list_deployments,
                input_schema=tag_filter_schema("deployments"),
            ),
            self.tool(
                "komodo_get_deployment",
                "Get detailed information about a specific Komodo Deployment by "
                "name or ID. Returns configuration, image, state, and current "
                "action state.",
                self.get_deployment,
                input_schema=DEPLOYMENT_SCHEMA,
            ),
            self.tool(
                "komodo_get_deployment_log",
                "Get logs from a Komodo Deployment's Docker container. Optionally "
                "search for specific terms in the log output. Returns the most "
                "recent log lines from the container.",
                self.get_deployment_log,
                input_schema=object_schema(
                    {
                        "deployment": string_property("Deployment name or ID"),
                        **LOG_SEARCH_PROPERTIES,
                    },
                    ["deployment"],
                ),
            ),
            self.tool(
                "komodo_inspect_deployment_container",
                "Inspect the Docker container associated with a Deployment. "
                "Returns the full container state including configuration, mounts, "
                "network settings, and runtime status (equivalent to docker inspect).",
                self.inspect_deployment_container,
                input_schema=DEPLOYMENT_SCHEMA,
            ),
            self.tool(
                "komodo_get_deployments_summary",
                "Get a summary of all Komodo Deployments. Returns aggregate counts "
                "by state: total, running, stopped, not deployed, unhealthy, "
                "and unknown.",
                self.get_deployments_summary,
            ),
            self.tool(
                "komodo_deploy_deployment",
                "⚠️ DEPLOY a Komodo Deployment. This stops the current container "
                "and starts a new one with the latest image and configuration. The "
                "service will be briefly unavailable during redeployment.",
                self.deploy_deployment,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=DEPLOYMENT_SCHEMA,
                annotations=EXECUTE_ANNOTATIONS,
            ),
            self.tool(
                "komodo_pull_deployment",
                "PULL the image for a Komodo Deployment (docker pull). Downloads "
                "the latest image without redeploying the container.",
                self.pull_deployment,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=DEPLOYMENT_SCHEMA,
                annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": True},
            ),
            self.tool(
                "komodo_deployment_lifecycle",
                "⚠️ Control a Komodo Deployment's container lifecycle. 'start' "
                "brings the container up, 'stop' brings it down gracefully, "
                "'restart' stops then starts, 'pause' freezes it without stopping, "
                "'unpause' resumes a paused container.",
                self.deployment_lifecycle,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "deployment": string_property("Deployment name or ID"),
                        "action": string_property(
                            "Lifecycle action to perform",
                            enum=list(LIFECYCLE_OPERATIONS),
                        ),
                    },
                    ["deployment", "action"],
                ),
                annotations=EXECUTE_ANNOTATIONS,
            ),
            self.tool(
                "komodo_destroy_deployment",
                "🔴 DESTROY a Komodo Deployment's container. The container is "
                "stopped and removed, along with any data not stored in volumes. "
                "THIS CANNOT BE UNDONE.",
                self.destroy_deployment,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=DEPLOYMENT_SCHEMA,
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def list_deployments(self, args: dict[str, Any]) -> ToolResponse:
        try:
            deployments = await self.client.read("ListDeployments", tag_query(args))
            return self._success(format_deployment_list(deployments))
        except Exception as e:
            return self._error("listing deployments", e)

    async def get_deployment(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        try:
            data, state = await self.read_pair(
                "GetDeployment", "GetDeploymentActionState", {"deployment": deployment}
            )
            return self._success(format_deployment_detail(data, state))
        except Exception as e:
            return self._error(f"getting deployment '{deployment}'", e)

    async def get_deployment_log(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        terms = args.get("search_terms")
        try:
            if terms:
                log = await self.client.read("SearchDeploymentLog", {
                    "deployment": deployment,
                    "terms": terms,
                    "combinator": args.get("search_combinator") or "Or",
                })
            else:
                log = await self.client.read("GetDeploymentLog", {
                    "deployment": deployment,
                    "tail": args.get("tail") or 50,
                })
            return self._success(format_log(log))
        except Exception as e:
            return self._error(f"getting logs for deployment '{deployment}'", e)

    async def inspect_deployment_container(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        try:
            container = await self.client.read(
                "InspectDeploymentContainer", {"deployment": deployment}
            )
            return self._json(container)
        except Exception as e:
            return self._error(f"inspecting container for deployment '{deployment}'", e)

    async def get_deployments_summary(self, args: dict[str, Any]) -> ToolResponse:
        try:
            summary = await self.client.read("GetDeploymentsSummary", {})
            return self._success(format_deployments_summary(summary))
        except Exception as e:
            return self._error("getting deployments summary", e)

    async def deploy_deployment(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        try:
            update = await self.client.execute("Deploy", {"deployment": deployment})
            return self._success(
                format_update_created(update, f"Deploying deployment '{deployment}'")
            )
        except Exception as e:
            return self._error(f"deploying deployment '{deployment}'", e)

    async def pull_deployment(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        try:
            update = await self.client.execute("PullDeployment", {"deployment": deployment})
            return self._success(
                format_update_created(update, f"Pulling image for deployment '{deployment}'")
            )
        except Exception as e:
            return self._error(f"pulling image for deployment '{deployment}'", e)

    async def deployment_lifecycle(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        action = args["action"]
        try:
            update = await self.client.execute(
                LIFECYCLE_OPERATIONS[action], {"deployment": deployment}
            )
            return self._success(
                format_update_created(update, f"Running {action} on deployment '{deployment}'")
            )
        except Exception as e:
            return self._error(f"running {action} on deployment '{deployment}'", e)

    async def destroy_deployment(self, args: dict[str, Any]) -> ToolResponse:
        deployment = args["deployment"]
        try:
            update = await self.client.execute("DestroyDeployment", {"deployment": deployment})
            return self._success(format_update_created(
                update, f"Destroying deployment '{deployment}' - this is permanent"
            ))
        except Exception as e:
            return self._error(f"destroying deployment '{deployment}'", e)


def register_deployment_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Deployments domain with the MCP server."""
    return DeploymentTools(client, redactor).register(registry)
