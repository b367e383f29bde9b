"""Komodo domains.

Each domain is one Komodo resource family and contains:
- Tool descriptors with their access tier and category
- Handlers translating tool arguments into Komodo API operations
- A register function called at server startup

Domains share only the Komodo client and the redactor.
"""

from typing import TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:
    from mcp_server.client import KomodoClient
    from mcp_server.registry import ToolRegistry
    from shared.errors import Redactor

logger = get_logger(__name__)


def load_all_domains(
    registry: "ToolRegistry",
    client: "KomodoClient",
    redactor: "Redactor",
) -> int:
    """
    Offer every domain's tools to the registry.

    Returns:
        Number of tools exposed under the current configuration
    """
    from domains.servers import register_server_tools
    from domains.stacks import register_stack_tools
    from domains.deployments import register_deployment_tools
    from domains.containers import register_container_tools
    from domains.builds import register_build_tools
    from domains.repos import register_repo_tools
    from domains.procedures import register_procedure_tools
    from domains.actions import register_action_tools
    from domains.builders import register_builder_tools
    from domains.alerters import register_alerter_tools
    from domains.resource_syncs import register_resource_sync_tools
    from domains.updates import register_update_tools
    from domains.write import register_write_tools

    registrars = [
        register_server_tools,
        register_stack_tools,
        register_deployment_tools,
        register_container_tools,
        register_build_tools,
        register_repo_tools,
        register_procedure_tools,
        register_action_tools,
        register_builder_tools,
        register_alerter_tools,
        register_resource_sync_tools,
        register_update_tools,
        register_write_tools,
    ]
    total = sum(register(registry, client, redactor) for register in registrars)

    logger.info("Domains loaded", tool_count=total, categories=registry.list_categories())
    return total


__all__ = ["load_all_domains"]
