"""Procedures Domain - multi-stage orchestrations of Komodo executions."""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import EXECUTE_ANNOTATIONS, KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import (
    format_procedure_detail,
    format_procedure_list,
    format_update_created,
)

PROCEDURE_SCHEMA = object_schema(
    {"procedure": string_property("Procedure name or ID")}, ["procedure"]
)


class ProcedureTools(KomodoToolset):
    """Tools for Komodo Procedures."""

    category = "procedures"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_procedures",
                "List all Komodo Procedures. A Procedure runs a sequence of stages, "
                "each executing one or more Komodo operations (deploys, builds, "
                "syncs) in order. Returns name, state, and stage count.",
                self.list_procedures,
                input_schema=tag_filter_schema("procedures"),
            ),
            self.tool(
                "komodo_get_procedure",
                "Get detailed information about a specific Komodo Procedure by name "
                "or ID. Returns its stages, schedule, webhook setting, and whether "
                "it is currently running.",
                self.get_procedure,
                input_schema=PROCEDURE_SCHEMA,
            ),
            self.tool(
                "komodo_run_procedure",
                "⚠️ RUN a Komodo Procedure. Executes every enabled stage in order; "
                "stages may deploy, build, or destroy other resources.",
                self.run_procedure,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=PROCEDURE_SCHEMA,
                annotations=EXECUTE_ANNOTATIONS,
            ),
        ]

    async def list_procedures(self, args: dict[str, Any]) -> ToolResponse:
        try:
            procedures = await self.client.read("ListProcedures", tag_query(args))
            return self._success(format_procedure_list(procedures))
        except Exception as e:
            return self._error("listing procedures", e)

    async def get_procedure(self, args: dict[str, Any]) -> ToolResponse:
        procedure = args["procedure"]
        try:
            data, state = await self.read_pair(
                "GetProcedure", "GetProcedureActionState", {"procedure": procedure}
            )
            return self._success(format_procedure_detail(data, state))
        except Exception as e:
            return self._error(f"getting procedure '{procedure}'", e)

    async def run_procedure(self, args: dict[str, Any]) -> ToolResponse:
        procedure = args["procedure"]
        try:
            update = await self.client.execute("RunProcedure", {"procedure": procedure})
            return self._success(
                format_update_created(update, f"Running procedure '{procedure}'")
            )
        except Exception as e:
            return self._error(f"running procedure '{procedure}'", e)


def register_procedure_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Procedures domain with the MCP server."""
    return ProcedureTools(client, redactor).register(registry)
