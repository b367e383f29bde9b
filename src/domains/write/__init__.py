"""Write Domain - create, update and delete Komodo resources.

A single tool, ``komodo_write_resource``, covers every writable resource
kind. Each kind in ``RESOURCE_KINDS`` carries its own create / update /
delete behavior; Variables are keyed by name and update field by field,
everything else goes through the generic ``Create<T>`` / ``Update<T>`` /
``Delete<T>`` operations.
"""

from typing import Any, Optional

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import EXECUTE_ANNOTATIONS, KomodoToolset
from domains.formatters import (
    format_resource_created,
    format_resource_deleted,
    format_resource_updated,
)

WRITE_ACTIONS = ["create", "update", "delete"]


class WriteValidationError(ValueError):
    """Arguments are incomplete for the requested write; no API call was made."""


class ResourceKind:
    """A writable resource kind backed by the generic Komodo write operations."""

    def __init__(self, name: str) -> None:
        self.name = name

    async def create(
        self, client: KomodoClient, name: str, config: Optional[dict[str, Any]]
    ) -> str:
        result = await client.write(f"Create{self.name}", {"name": name, "config": config or {}})
        return format_resource_created(self.name, result or {"name": name})

    async def update(
        self,
        client: KomodoClient,
        resource_id: Optional[str],
        name: Optional[str],
        config: dict[str, Any],
    ) -> str:
        if not resource_id:
            raise WriteValidationError(f"'id' is required when updating a {self.name}.")
        result = await client.write(f"Update{self.name}", {"id": resource_id, "config": config})
        return format_resource_updated(self.name, result or {"name": name or resource_id})

    async def delete(
        self, client: KomodoClient, resource_id: Optional[str], name: Optional[str]
    ) -> str:
        if not resource_id:
            raise WriteValidationError(f"'id' is required when deleting a {self.name}.")
        result = await client.write(f"Delete{self.name}", {"id": resource_id})
        return format_resource_deleted(self.name, result or {"name": name or resource_id})


class VariableKind(ResourceKind):
    """Variables are identified by name and have no generic config object."""

    FIELDS = ("value", "description", "is_secret")
    UPDATE_OPERATIONS = {
        "value": "UpdateVariableValue",
        "description": "UpdateVariableDescription",
        "is_secret": "UpdateVariableIsSecret",
    }

    def __init__(self) -> None:
        super().__init__("Variable")

    async def create(
        self, client: KomodoClient, name: str, config: Optional[dict[str, Any]]
    ) -> str:
        config = config or {}
        params: dict[str, Any] = {"name": name}
        params.update({f: config[f] for f in self.FIELDS if config.get(f) is not None})
        result = await client.write("CreateVariable", params)
        return format_resource_created(self.name, {**(result or {}), "name": name})

    async def update(
        self,
        client: KomodoClient,
        resource_id: Optional[str],
        name: Optional[str],
        config: dict[str, Any],
    ) -> str:
        var_name = name or resource_id
        if not var_name:
            raise WriteValidationError("'name' (or 'id') is required when updating a Variable.")
        for field, operation in self.UPDATE_OPERATIONS.items():
            if config.get(field) is not None:
                await client.write(operation, {"name": var_name, field: config[field]})
        return format_resource_updated(self.name, {"name": var_name})

    async def delete(
        self, client: KomodoClient, resource_id: Optional[str], name: Optional[str]
    ) -> str:
        var_name = name or resource_id
        if not var_name:
            raise WriteValidationError("'name' (or 'id') is required when deleting a Variable.")
        result = await client.write("DeleteVariable", {"name": var_name})
        return format_resource_deleted(self.name, {**(result or {}), "name": var_name})


RESOURCE_KINDS: dict[str, ResourceKind] = {
    kind.name: kind
    for kind in [
        ResourceKind("Stack"),
        ResourceKind("Deployment"),
        ResourceKind("Build"),
        ResourceKind("Repo"),
        ResourceKind("Procedure"),
        ResourceKind("Action"),
        ResourceKind("Alerter"),
        ResourceKind("Builder"),
        ResourceKind("ResourceSync"),
        VariableKind(),
    ]
}


def describe_write(action: str, resource_type: str, name: Optional[str], resource_id: Optional[str]) -> str:
    """Error context such as ``update Stack 'web' (abc123)``."""
    context = f"{action} {resource_type}"
    if name:
        context += f" '{name}'"
    if resource_id:
        context += f" ({resource_id})"
    return context


class WriteTools(KomodoToolset):
    """The polymorphic resource write tool."""

    category = "write"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_write_resource",
                "Create, update, or delete any Komodo resource. Supports: "
                f"{', '.join(RESOURCE_KINDS)}.\n\n"
                "CREATE: Provide resource_type, action='create', name, and optional config.\n"
                "UPDATE: Provide resource_type, action='update', id (or name for Variable), "
                "and config with the fields to change. Updates are partial merges: only "
                "provided config fields change. Use the corresponding get tool first to "
                "inspect the current config.\n"
                "DELETE: Provide resource_type, action='delete', and id (or name for "
                "Variable). WARNING: Delete is PERMANENT and cannot be undone.\n\n"
                "Variables use 'name' (not 'id') as their identifier. For Variable "
                "create/update, config accepts: value, description, is_secret.",
                self.write_resource,
                access_tier=AccessTier.FULL,
                input_schema=object_schema(
                    {
                        "resource_type": string_property(
                            "The type of Komodo resource to operate on",
                            enum=list(RESOURCE_KINDS),
                        ),
                        "action": string_property(
                            "The write action to perform", enum=WRITE_ACTIONS
                        ),
                        "name": string_property(
                            "Resource name. Required for create. Also used as the "
                            "identifier for Variable update/delete (instead of id)."
                        ),
                        "id": string_property(
                            "Resource ID. Required for update/delete (except Variable, "
                            "which uses name)."
                        ),
                        "config": {
                            "type": "object",
                            "description": "Configuration object. Required for update, "
                                           "optional for create. For Variable: value, "
                                           "description, is_secret.",
                        },
                    },
                    ["resource_type", "action"],
                ),
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def write_resource(self, args: dict[str, Any]) -> ToolResponse:
        resource_type = args["resource_type"]
        action = args["action"]
        name = args.get("name")
        resource_id = args.get("id")
        config = args.get("config")
        kind = RESOURCE_KINDS[resource_type]

        try:
            if action == "create":
                if not name:
                    raise WriteValidationError(
                        f"'name' is required when creating a {resource_type}."
                    )
                text = await kind.create(self.client, name, config)
            elif action == "update":
                if config is None:
                    raise WriteValidationError(
                        f"'config' is required when updating a {resource_type}."
                    )
                text = await kind.update(self.client, resource_id, name, config)
            else:
                text = await kind.delete(self.client, resource_id, name)
            return self._success(text)
        except WriteValidationError as e:
            return self._invalid(str(e))
        except Exception as e:
            return self._error(describe_write(action, resource_type, name, resource_id), e)


def register_write_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Write domain with the MCP server."""
    return WriteTools(client, redactor).register(registry)
