"""Repos Domain - git repositories checked out on a server."""

from typing import Any

from shared.errors import Redactor
from shared.models import AccessTier, ToolDescriptor, ToolResponse
from shared.schema import object_schema, string_property
from mcp_server.client import KomodoClient
from mcp_server.registry import ToolRegistry
from domains.base import KomodoToolset, tag_filter_schema, tag_query
from domains.formatters import format_repo_detail, format_repo_list, format_update_created

REPO_PROPERTY = string_property("Repo name or ID")

GIT_OPERATIONS = {
    "clone": "CloneRepo",
    "pull": "PullRepo",
}


class RepoTools(KomodoToolset):
    """Tools for Komodo Repos."""

    category = "repos"

    def tools(self) -> list[ToolDescriptor]:
        return [
            self.tool(
                "komodo_list_repos",
                "List all Komodo Repos. A Repo is a git repository that Komodo "
                "clones onto a server and keeps up to date. Returns name, state, "
                "repository, and server for each repo.",
                self.list_repos,
                input_schema=tag_filter_schema("repos"),
            ),
            self.tool(
                "komodo_get_repo",
                "Get detailed information about a specific Komodo Repo by name or "
                "ID. Returns configuration, commit hashes, clone/pull hooks, and "
                "current action state.",
                self.get_repo,
                input_schema=object_schema({"repo": REPO_PROPERTY}, ["repo"]),
            ),
            self.tool(
                "komodo_repo_clone_pull",
                "CLONE or PULL a Komodo Repo on its server. 'clone' performs a "
                "fresh clone (replacing the existing checkout), 'pull' fetches the "
                "latest commits. Configured on-clone / on-pull commands run afterwards.",
                self.repo_clone_pull,
                access_tier=AccessTier.READ_EXECUTE,
                input_schema=object_schema(
                    {
                        "repo": REPO_PROPERTY,
                        "action": string_property(
                            "'clone' for a fresh clone, 'pull' to update",
                            enum=list(GIT_OPERATIONS),
                        ),
                    },
                    ["repo", "action"],
                ),
                annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": True},
            ),
        ]

    async def list_repos(self, args: dict[str, Any]) -> ToolResponse:
        try:
            repos = await self.client.read("ListRepos", tag_query(args))
            return self._success(format_repo_list(repos))
        except Exception as e:
            return self._error("listing repos", e)

    async def get_repo(self, args: dict[str, Any]) -> ToolResponse:
        repo = args["repo"]
        try:
            data, state = await self.read_pair("GetRepo", "GetRepoActionState", {"repo": repo})
            return self._success(format_repo_detail(data, state))
        except Exception as e:
            return self._error(f"getting repo '{repo}'", e)

    async def repo_clone_pull(self, args: dict[str, Any]) -> ToolResponse:
        repo = args["repo"]
        action = args["action"]
        verb = "Cloning" if action == "clone" else "Pulling"
        try:
            update = await self.client.execute(GIT_OPERATIONS[action], {"repo": repo})
            return self._success(format_update_created(update, f"{verb} repo '{repo}'"))
        except Exception as e:
            return self._error(f"{verb.lower()} repo '{repo}'", e)


def register_repo_tools(
    registry: ToolRegistry, client: KomodoClient, redactor: Redactor
) -> int:
    """Register the Repos domain with the MCP server."""
    return RepoTools(client, redactor).register(registry)
