"""Tests for the Komodo domain toolsets."""

import importlib
import json

import pytest
from unittest.mock import AsyncMock

from shared.errors import Redactor

API_KEY = "K-abc123keyvalue"

QUEUED_UPDATE = {"_id": {"$oid": "upd-1"}, "status": "Queued"}


def make_client(reads=None, execute_result=None, write_result=None):
    """AsyncMock client whose read() answers per operation from ``reads``."""
    reads = reads or {}
    client = AsyncMock()

    async def read(operation, params=None):
        value = reads.get(operation)
        if isinstance(value, Exception):
            raise value
        return value

    client.read = AsyncMock(side_effect=read)
    client.execute = AsyncMock(return_value=execute_result or QUEUED_UPDATE)
    client.write = AsyncMock(return_value=write_result)
    return client


def calls(mock):
    return [c.args for c in mock.await_args_list]


class TestStackTools:
    """Tests for the Stacks domain."""

    def setup_method(self):
        """Set up a redactor holding the API key."""
        self.redactor = Redactor([API_KEY])

    def toolset(self, client):
        from domains.stacks import StackTools

        return StackTools(client, self.redactor)

    @pytest.mark.asyncio
    async def test_list_stacks_with_tag(self):
        """Test the tag filter is sent as a query."""
        client = make_client({"ListStacks": [
            {"name": "web", "info": {"state": "running", "server_id": "srv1", "services": [1, 2]}},
        ]})

        response = await self.toolset(client).list_stacks({"tag": "prod"})

        assert response.is_error is False
        assert "Found 1 stack(s):" in response.text
        assert "- web [running] server=srv1, services=2" in response.text
        client.read.assert_awaited_once_with("ListStacks", {"query": {"tags": ["prod"]}})

    @pytest.mark.asyncio
    async def test_get_stack_joins_action_state(self):
        """Test details and action state are combined into one answer."""
        client = make_client({
            "GetStack": {"name": "web", "_id": {"$oid": "stk-1"}, "config": {"server_id": "srv1"}},
            "GetStackActionState": {"deploying": True, "pulling": False},
        })

        response = await self.toolset(client).get_stack({"stack": "web"})

        assert response.is_error is False
        assert "Name: web" in response.text
        assert "ID: stk-1" in response.text
        assert "Currently: deploying" in response.text

    @pytest.mark.asyncio
    async def test_get_stack_fails_if_either_read_fails(self):
        """Test a failed action-state read turns the whole call into a redacted error."""
        from mcp_server.client import KomodoAPIError

        client = make_client({
            "GetStack": {"name": "web"},
            "GetStackActionState": KomodoAPIError(
                401, "GetStackActionState", {"error": f"bad key {API_KEY}"}
            ),
        })

        response = await self.toolset(client).get_stack({"stack": "web"})

        assert response.is_error is True
        assert response.text == "Error getting stack 'web': 401: bad key [REDACTED]"
        assert API_KEY not in response.text

    @pytest.mark.asyncio
    async def test_stack_log_tail_default(self):
        """Test a log read without search terms tails 50 lines."""
        client = make_client({"GetStackLog": {"stage": "compose logs", "success": True, "stdout": "hello"}})

        response = await self.toolset(client).get_stack_log({"stack": "web"})

        assert response.text == "[OK] compose logs\nhello"
        client.read.assert_awaited_once_with(
            "GetStackLog", {"stack": "web", "services": [], "tail": 50}
        )

    @pytest.mark.asyncio
    async def test_stack_log_search(self):
        """Test search terms switch to a log search with the Or combinator by default."""
        client = make_client({"SearchStackLog": {"stage": "search", "success": False}})

        response = await self.toolset(client).get_stack_log(
            {"stack": "web", "search_terms": ["error"], "services": ["api"]}
        )

        assert response.text == "[FAILED] search\n(no output)"
        client.read.assert_awaited_once_with("SearchStackLog", {
            "stack": "web",
            "services": ["api"],
            "terms": ["error"],
            "combinator": "Or",
        })

    @pytest.mark.asyncio
    async def test_inspect_returns_json(self):
        """Test container inspection is returned as pretty JSON."""
        container = {"Id": "abc", "State": {"Running": True}}
        client = make_client({"InspectStackContainer": container})

        response = await self.toolset(client).inspect_stack_container(
            {"stack": "web", "service": "api"}
        )

        assert json.loads(response.text) == container
        assert response.text == json.dumps(container, indent=2)

    @pytest.mark.asyncio
    async def test_deploy_only_if_changed(self):
        """Test the conditional deploy operation is chosen."""
        client = make_client()

        response = await self.toolset(client).deploy_stack(
            {"stack": "web", "only_if_changed": True}
        )

        client.execute.assert_awaited_once_with(
            "DeployStackIfChanged", {"stack": "web", "services": []}
        )
        assert "✓ Deploying stack 'web'" in response.text
        assert "Update ID: upd-1" in response.text
        assert "komodo_get_update" in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action,operation", [
        ("start", "StartStack"),
        ("stop", "StopStack"),
        ("restart", "RestartStack"),
        ("pause", "PauseStack"),
        ("unpause", "UnpauseStack"),
    ])
    async def test_lifecycle_mapping(self, action, operation):
        """Test each lifecycle action maps to its Komodo operation."""
        client = make_client()

        response = await self.toolset(client).stack_lifecycle({"stack": "web", "action": action})

        assert response.is_error is False
        client.execute.assert_awaited_once_with(operation, {"stack": "web"})

    @pytest.mark.asyncio
    async def test_execute_failure(self):
        """Test an execute error names what was attempted."""
        client = make_client()
        client.execute.side_effect = RuntimeError("connection refused")

        response = await self.toolset(client).destroy_stack({"stack": "web"})

        assert response.is_error is True
        assert response.text == "Error destroying stack 'web': connection refused"


class TestServerTools:
    """Tests for the Servers domain."""

    @pytest.mark.asyncio
    async def test_server_info_joins_processes(self):
        """Test system info and top processes are reported together."""
        from domains.servers import ServerTools

        client = make_client({
            "GetSystemInformation": {"host_name": "node1", "cpu_brand": "Xeon"},
            "ListSystemProcesses": [
                {"pid": 1, "name": "init", "cpu_perc": 0.1, "mem_mb": 10},
                {"pid": 42, "name": "dockerd", "cpu_perc": 12.5, "mem_mb": 300},
            ],
        })

        response = await ServerTools(client, Redactor()).get_server_info({"server": "node1"})

        lines = response.text.splitlines()
        assert lines[0] == "Hostname: node1"
        assert "Top 2 processes:" in lines
        assert lines.index("PID      CPU%    MEM(MB)  NAME") + 1 == lines.index(
            next(line for line in lines if line.endswith("dockerd"))
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("resource_type,operation", [
        ("containers", "PruneContainers"),
        ("images", "PruneImages"),
        ("system", "PruneSystem"),
    ])
    async def test_prune_mapping(self, resource_type, operation):
        """Test each prune target maps to its operation."""
        from domains.servers import ServerTools

        client = make_client()
        await ServerTools(client, Redactor()).prune_docker(
            {"server": "node1", "resource_type": resource_type}
        )

        client.execute.assert_awaited_once_with(operation, {"server": "node1"})

    @pytest.mark.asyncio
    async def test_delete_docker_resource(self):
        """Test deleting a named docker resource."""
        from domains.servers import ServerTools

        client = make_client()
        await ServerTools(client, Redactor()).delete_docker_resource(
            {"server": "node1", "resource_type": "volume", "name": "data"}
        )

        client.execute.assert_awaited_once_with("DeleteVolume", {"server": "node1", "name": "data"})


class TestExecuteMappings:
    """Tests for operation names used by the other execute tools."""

    @pytest.mark.asyncio
    async def test_deploy_deployment(self):
        """Test deployments deploy through the Deploy operation."""
        from domains.deployments import DeploymentTools

        client = make_client()
        await DeploymentTools(client, Redactor()).deploy_deployment({"deployment": "api"})

        client.execute.assert_awaited_once_with("Deploy", {"deployment": "api"})

    @pytest.mark.asyncio
    async def test_deployment_lifecycle(self):
        """Test deployment lifecycle actions map to the Deployment operations."""
        from domains.deployments import DeploymentTools

        client = make_client()
        await DeploymentTools(client, Redactor()).deployment_lifecycle(
            {"deployment": "api", "action": "restart"}
        )

        client.execute.assert_awaited_once_with("RestartDeployment", {"deployment": "api"})

    @pytest.mark.asyncio
    async def test_trigger_sync_uses_sync_param(self):
        """Test resource syncs are addressed with the sync parameter."""
        from domains.resource_syncs import ResourceSyncTools

        client = make_client()
        await ResourceSyncTools(client, Redactor()).trigger_sync({"resource_sync": "infra"})

        client.execute.assert_awaited_once_with("RunSync", {"sync": "infra"})

    @pytest.mark.asyncio
    async def test_repo_clone(self):
        """Test the clone action maps to CloneRepo."""
        from domains.repos import RepoTools

        client = make_client()
        await RepoTools(client, Redactor()).repo_clone_pull({"repo": "app", "action": "clone"})

        client.execute.assert_awaited_once_with("CloneRepo", {"repo": "app"})

    @pytest.mark.asyncio
    async def test_container_log(self):
        """Test container logs are read by server and container."""
        from domains.containers import ContainerTools

        client = make_client({"GetContainerLog": {"stage": "logs", "success": True, "stdout": "x"}})
        await ContainerTools(client, Redactor()).get_container_log(
            {"server": "node1", "container": "redis", "tail": 10}
        )

        client.read.assert_awaited_once_with(
            "GetContainerLog", {"server": "node1", "container": "redis", "tail": 10}
        )

    @pytest.mark.asyncio
    async def test_completed_update_reports_result(self):
        """Test an update that finished immediately reports its outcome."""
        from domains.builds import BuildTools

        client = make_client(execute_result={
            "_id": {"$oid": "upd-2"},
            "status": "Complete",
            "success": False,
            "logs": [{"stage": "build", "stderr": "no space left\nmore"}],
        })

        response = await BuildTools(client, Redactor()).run_build({"build": "app"})

        assert "Result: Failed" in response.text
        assert "Error: no space left" in response.text
        assert "komodo_get_update" not in response.text


class TestUpdateTools:
    """Tests for the Updates domain."""

    def test_build_update_query(self):
        """Test filters map onto the ListUpdates query fields."""
        from domains.updates import build_update_query

        assert build_update_query({}) == {}
        assert build_update_query({
            "target_type": "Stack",
            "target_id": "web",
            "operation": "DeployStack",
            "success": False,
        }) == {
            "target.type": "Stack",
            "target.id": "web",
            "operation": "DeployStack",
            "success": False,
        }

    @pytest.mark.asyncio
    async def test_list_updates_pagination_hint(self):
        """Test the next page is offered when Komodo reports one."""
        from domains.updates import UpdateTools

        client = make_client({"ListUpdates": {
            "updates": [{
                "id": "u1",
                "operation": "DeployStack",
                "status": "Complete",
                "success": True,
                "target": {"type": "Stack", "id": "web"},
                "start_ts": 0,
                "username": "admin",
            }],
            "next_page": 1,
        }})

        response = await UpdateTools(client, Redactor()).list_updates({"target_type": "Stack"})

        client.read.assert_awaited_once_with(
            "ListUpdates", {"page": 0, "query": {"target.type": "Stack"}}
        )
        assert "- [OK] DeployStack → Stack/web (1970-01-01T00:00:00.000Z, by admin) id=u1" in response.text
        assert response.text.endswith("Use page=1 to fetch the next page.")

    @pytest.mark.asyncio
    async def test_list_updates_last_page(self):
        """Test no hint is given on the last page."""
        from domains.updates import UpdateTools

        client = make_client({"ListUpdates": {"updates": [], "next_page": None}})

        response = await UpdateTools(client, Redactor()).list_updates({"page": 3})

        client.read.assert_awaited_once_with("ListUpdates", {"page": 3})
        assert response.text == "No updates found."


class TestWriteTools:
    """Tests for the resource write tool."""

    def toolset(self, client):
        from domains.write import WriteTools

        return WriteTools(client, Redactor([API_KEY]))

    @pytest.mark.asyncio
    async def test_create_requires_name(self):
        """Test create without a name fails before any API call."""
        client = make_client()

        response = await self.toolset(client).write_resource(
            {"resource_type": "Stack", "action": "create"}
        )

        assert response.is_error is True
        assert response.text == "Error: 'name' is required when creating a Stack."
        client.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_requires_config(self):
        """Test update without config fails before any API call."""
        client = make_client()

        response = await self.toolset(client).write_resource(
            {"resource_type": "Stack", "action": "update", "id": "stk-1"}
        )

        assert response.text == "Error: 'config' is required when updating a Stack."
        client.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_requires_id(self):
        """Test non-variable updates need an id."""
        client = make_client()

        response = await self.toolset(client).write_resource(
            {"resource_type": "Deployment", "action": "update", "name": "api", "config": {}}
        )

        assert response.text == "Error: 'id' is required when updating a Deployment."
        client.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_resource(self):
        """Test create sends name and config to the generic operation."""
        client = make_client(write_result={"name": "web", "_id": {"$oid": "stk-9"}})

        response = await self.toolset(client).write_resource({
            "resource_type": "Stack",
            "action": "create",
            "name": "web",
            "config": {"server_id": "srv1"},
        })

        client.write.assert_awaited_once_with(
            "CreateStack", {"name": "web", "config": {"server_id": "srv1"}}
        )
        assert response.text.startswith("Created Stack 'web' (ID: stk-9)")

    @pytest.mark.asyncio
    async def test_update_resource(self):
        """Test update sends id and config."""
        client = make_client(write_result={"name": "web"})

        response = await self.toolset(client).write_resource({
            "resource_type": "Stack",
            "action": "update",
            "id": "stk-1",
            "config": {"auto_pull": True},
        })

        client.write.assert_awaited_once_with(
            "UpdateStack", {"id": "stk-1", "config": {"auto_pull": True}}
        )
        assert response.text.startswith("Updated Stack 'web'")

    @pytest.mark.asyncio
    async def test_variable_update_by_field(self):
        """Test variable updates issue one call per provided field."""
        client = make_client()

        response = await self.toolset(client).write_resource({
            "resource_type": "Variable",
            "action": "update",
            "name": "DB_HOST",
            "config": {"value": "db.internal", "is_secret": True},
        })

        assert calls(client.write) == [
            ("UpdateVariableValue", {"name": "DB_HOST", "value": "db.internal"}),
            ("UpdateVariableIsSecret", {"name": "DB_HOST", "is_secret": True}),
        ]
        assert response.text.startswith("Updated Variable 'DB_HOST'")

    @pytest.mark.asyncio
    async def test_variable_create(self):
        """Test variable create passes only the provided fields."""
        client = make_client(write_result={"name": "DB_HOST"})

        response = await self.toolset(client).write_resource({
            "resource_type": "Variable",
            "action": "create",
            "name": "DB_HOST",
            "config": {"value": "db.internal", "description": None},
        })

        client.write.assert_awaited_once_with(
            "CreateVariable", {"name": "DB_HOST", "value": "db.internal"}
        )
        assert response.text.startswith("Created Variable 'DB_HOST'")

    @pytest.mark.asyncio
    async def test_variable_delete_by_name(self):
        """Test variables are deleted by name."""
        client = make_client()

        response = await self.toolset(client).write_resource(
            {"resource_type": "Variable", "action": "delete", "name": "DB_HOST"}
        )

        client.write.assert_awaited_once_with("DeleteVariable", {"name": "DB_HOST"})
        assert response.text == "Deleted Variable 'DB_HOST'"

    @pytest.mark.asyncio
    async def test_delete_failure_context(self):
        """Test API failures name the attempted write and are redacted."""
        client = make_client()
        client.write.side_effect = RuntimeError(f"403 with key {API_KEY}")

        response = await self.toolset(client).write_resource(
            {"resource_type": "Stack", "action": "delete", "id": "stk-1"}
        )

        assert response.is_error is True
        assert response.text == "Error delete Stack (stk-1): 403 with key [REDACTED]"


LIST_CASES = [
    ("domains.deployments", "DeploymentTools", "list_deployments", "ListDeployments", "deployment"),
    ("domains.builds", "BuildTools", "list_builds", "ListBuilds", "build"),
    ("domains.repos", "RepoTools", "list_repos", "ListRepos", "repo"),
    ("domains.procedures", "ProcedureTools", "list_procedures", "ListProcedures", "procedure"),
    ("domains.actions", "ActionTools", "list_actions", "ListActions", "action"),
    ("domains.builders", "BuilderTools", "list_builders", "ListBuilders", "builder"),
    ("domains.alerters", "AlerterTools", "list_alerters", "ListAlerters", "alerter"),
    ("domains.resource_syncs", "ResourceSyncTools", "list_resource_syncs",
     "ListResourceSyncs", "resource sync"),
]

JOIN_CASES = [
    ("domains.servers", "ServerTools", "get_server", {"server": "node1"},
     "GetServer", "GetServerActionState", {"server": "node1"}, "getting server 'node1'"),
    ("domains.deployments", "DeploymentTools", "get_deployment", {"deployment": "api"},
     "GetDeployment", "GetDeploymentActionState", {"deployment": "api"},
     "getting deployment 'api'"),
    ("domains.builds", "BuildTools", "get_build", {"build": "app"},
     "GetBuild", "GetBuildActionState", {"build": "app"}, "getting build 'app'"),
    ("domains.repos", "RepoTools", "get_repo", {"repo": "infra"},
     "GetRepo", "GetRepoActionState", {"repo": "infra"}, "getting repo 'infra'"),
    ("domains.procedures", "ProcedureTools", "get_procedure", {"procedure": "nightly"},
     "GetProcedure", "GetProcedureActionState", {"procedure": "nightly"},
     "getting procedure 'nightly'"),
    ("domains.actions", "ActionTools", "get_action", {"action": "cleanup"},
     "GetAction", "GetActionActionState", {"action": "cleanup"}, "getting action 'cleanup'"),
    ("domains.resource_syncs", "ResourceSyncTools", "get_resource_sync",
     {"resource_sync": "infra"}, "GetResourceSync", "GetResourceSyncActionState",
     {"sync": "infra"}, "getting resource sync 'infra'"),
]


def make_toolset(module, class_name, client, redactor=None):
    toolset_class = getattr(importlib.import_module(module), class_name)
    return toolset_class(client, redactor or Redactor([API_KEY]))


class TestReadToolsShared:
    """Tests for the list and detail pattern shared by every domain."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("module,class_name,handler,operation,noun", LIST_CASES)
    async def test_list_with_tag(self, module, class_name, handler, operation, noun):
        """Test list tools forward the tag filter and report an empty result."""
        client = make_client({operation: []})
        toolset = make_toolset(module, class_name, client)

        response = await getattr(toolset, handler)({"tag": "prod"})

        client.read.assert_awaited_once_with(operation, {"query": {"tags": ["prod"]}})
        assert response.is_error is False
        assert response.text == f"No {noun}s found."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("module,class_name,handler,operation,noun", LIST_CASES)
    async def test_list_without_tag(self, module, class_name, handler, operation, noun):
        """Test list tools send no query when no tag is given."""
        client = make_client({operation: []})
        toolset = make_toolset(module, class_name, client)

        await getattr(toolset, handler)({})

        client.read.assert_awaited_once_with(operation, {})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "module,class_name,handler,args,operation,state_operation,params,context", JOIN_CASES
    )
    async def test_join_reads_both(
        self, module, class_name, handler, args, operation, state_operation, params, context
    ):
        """Test detail tools read the resource and its action state with the same params."""
        client = make_client({operation: {"name": "x"}, state_operation: {}})
        toolset = make_toolset(module, class_name, client)

        response = await getattr(toolset, handler)(args)

        assert response.is_error is False
        assert sorted(calls(client.read)) == sorted([
            (operation, params),
            (state_operation, params),
        ])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "module,class_name,handler,args,operation,state_operation,params,context", JOIN_CASES
    )
    async def test_join_failure_is_whole_and_redacted(
        self, module, class_name, handler, args, operation, state_operation, params, context
    ):
        """Test a failed action-state read discards the detail and hides the key."""
        from mcp_server.client import KomodoAPIError

        client = make_client({
            operation: {"name": "x", "description": "should not be shown"},
            state_operation: KomodoAPIError(500, state_operation, f"denied for {API_KEY}"),
        })
        toolset = make_toolset(module, class_name, client)

        response = await getattr(toolset, handler)(args)

        assert response.is_error is True
        assert response.text == f"Error {context}: 500: denied for [REDACTED]"
        assert "should not be shown" not in response.text


class TestDeploymentTools:
    """Tests for the Deployments domain."""

    @pytest.mark.asyncio
    async def test_list_deployments(self):
        """Test one line per deployment with image and server."""
        from domains.deployments import DeploymentTools

        client = make_client({"ListDeployments": [{
            "name": "api",
            "tags": ["prod"],
            "info": {"state": "running", "image": "ghcr.io/acme/api:1", "server_id": "srv1"},
        }]})

        response = await DeploymentTools(client, Redactor()).list_deployments({})

        assert response.text == (
            "Found 1 deployment(s):\n"
            "- api [running] image=ghcr.io/acme/api:1, server=srv1, tags=prod"
        )

    @pytest.mark.asyncio
    async def test_get_deployment(self):
        """Test details include image, network and the running action."""
        from domains.deployments import DeploymentTools

        client = make_client({
            "GetDeployment": {
                "name": "api",
                "_id": {"$oid": "dep-1"},
                "config": {
                    "server_id": "srv1",
                    "image": {"type": "Image", "params": {"image": "nginx:1"}},
                    "network": "host",
                    "restart": "unless-stopped",
                },
            },
            "GetDeploymentActionState": {"deploying": True},
        })

        response = await DeploymentTools(client, Redactor()).get_deployment({"deployment": "api"})

        lines = response.text.splitlines()
        assert "ID: dep-1" in lines
        assert "Image: nginx:1" in lines
        assert "Network: host" in lines
        assert "Restart: unless-stopped" in lines
        assert "Redeploy on build: false" in lines
        assert lines[-1] == "Currently: deploying"

    @pytest.mark.asyncio
    async def test_deployments_summary(self):
        """Test the summary reports every state count."""
        from domains.deployments import DeploymentTools

        client = make_client({"GetDeploymentsSummary": {"total": 3, "running": 2, "not_deployed": 1}})

        response = await DeploymentTools(client, Redactor()).get_deployments_summary({})

        assert response.text.splitlines()[:4] == [
            "Deployments summary:",
            "  Total: 3",
            "  Running: 2",
            "  Stopped: 0",
        ]
        assert "  Not deployed: 1" in response.text


class TestBuildTools:
    """Tests for the Builds domain."""

    @pytest.mark.asyncio
    async def test_list_builds(self):
        """Test builds list their version and repo."""
        from domains.builds import BuildTools

        client = make_client({"ListBuilds": [{
            "name": "app",
            "info": {"state": "Ok", "version": {"major": 1, "minor": 2, "patch": 3}, "repo": "acme/app"},
        }]})

        response = await BuildTools(client, Redactor()).list_builds({})

        assert response.text == "Found 1 build(s):\n- app [Ok] v1.2.3, repo=acme/app"

    @pytest.mark.asyncio
    async def test_get_build(self):
        """Test build details carry the last build time, version and building state."""
        from domains.builds import BuildTools

        client = make_client({
            "GetBuild": {
                "name": "app",
                "_id": {"$oid": "bld-1"},
                "info": {"last_built_at": 1704067200000, "built_hash": "abc1234"},
                "config": {
                    "builder_id": "local",
                    "version": {"major": 1, "minor": 2, "patch": 3},
                    "git_provider": "github.com",
                    "repo": "acme/app",
                    "branch": "main",
                    "build_path": ".",
                    "dockerfile_path": "Dockerfile",
                },
            },
            "GetBuildActionState": {"building": True},
        })

        response = await BuildTools(client, Redactor()).get_build({"build": "app"})

        lines = response.text.splitlines()
        assert "Last built: 2024-01-01T00:00:00.000Z" in lines
        assert "Built commit: abc1234" in lines
        assert "Version: 1.2.3" in lines
        assert "Repo: github.com/acme/app (branch: main)" in lines
        assert lines[-1] == "Currently: building"

    @pytest.mark.asyncio
    async def test_cancel_build(self):
        """Test cancelling a build."""
        from domains.builds import BuildTools

        client = make_client()
        response = await BuildTools(client, Redactor()).cancel_build({"build": "app"})

        client.execute.assert_awaited_once_with("CancelBuild", {"build": "app"})
        assert response.text.startswith("✓ Cancelling build 'app'")


class TestRepoTools:
    """Tests for the Repos domain."""

    @pytest.mark.asyncio
    async def test_list_repos(self):
        """Test repos list their git repo and server."""
        from domains.repos import RepoTools

        client = make_client({"ListRepos": [
            {"name": "infra", "info": {"state": "Ok", "repo": "acme/infra", "server_id": "srv1"}},
        ]})

        response = await RepoTools(client, Redactor()).list_repos({})

        assert response.text == "Found 1 repo(s):\n- infra [Ok] repo=acme/infra, server=srv1"

    @pytest.mark.asyncio
    async def test_get_repo(self):
        """Test repo details show hooks and the pulling state."""
        from domains.repos import RepoTools

        client = make_client({
            "GetRepo": {
                "name": "infra",
                "config": {
                    "server_id": "srv1",
                    "git_provider": "github.com",
                    "repo": "acme/infra",
                    "branch": "main",
                    "on_pull": {"path": ".", "command": "make deploy"},
                },
            },
            "GetRepoActionState": {"pulling": True, "cloning": False},
        })

        response = await RepoTools(client, Redactor()).get_repo({"repo": "infra"})

        lines = response.text.splitlines()
        assert "Server: srv1" in lines
        assert "On pull: . make deploy" in lines
        assert not any(line.startswith("On clone") for line in lines)
        assert lines[-1] == "Currently: pulling"

    @pytest.mark.asyncio
    async def test_repo_pull_failure(self):
        """Test a failed pull names the repo."""
        from domains.repos import RepoTools

        client = make_client()
        client.execute.side_effect = RuntimeError("timeout")

        response = await RepoTools(client, Redactor()).repo_clone_pull(
            {"repo": "infra", "action": "pull"}
        )

        client.execute.assert_awaited_once_with("PullRepo", {"repo": "infra"})
        assert response.text == "Error pulling repo 'infra': timeout"


class TestProcedureTools:
    """Tests for the Procedures domain."""

    @pytest.mark.asyncio
    async def test_list_procedures(self):
        """Test procedures list their stage count."""
        from domains.procedures import ProcedureTools

        client = make_client({"ListProcedures": [{"name": "nightly", "info": {"state": "Ok", "stages": 2}}]})

        response = await ProcedureTools(client, Redactor()).list_procedures({})

        assert response.text == "Found 1 procedure(s):\n- nightly [Ok] stages=2"

    @pytest.mark.asyncio
    async def test_get_procedure(self):
        """Test procedure details list every stage and the schedule."""
        from domains.procedures import ProcedureTools

        client = make_client({
            "GetProcedure": {
                "name": "nightly",
                "config": {
                    "stages": [
                        {"name": "build", "enabled": True, "executions": [{}, {}]},
                        {"name": "deploy", "enabled": False, "executions": [{}]},
                    ],
                    "webhook_enabled": False,
                    "schedule": "0 0 * * *",
                    "schedule_enabled": False,
                },
            },
            "GetProcedureActionState": {"running": True},
        })

        response = await ProcedureTools(client, Redactor()).get_procedure({"procedure": "nightly"})

        lines = response.text.splitlines()
        assert "Stages: 2" in lines
        assert "  - build: 2 execution(s)" in lines
        assert "  - deploy (disabled): 1 execution(s)" in lines
        assert "Webhook enabled: false" in lines
        assert "Schedule: 0 0 * * * (disabled)" in lines
        assert lines[-1] == "Currently: running"

    @pytest.mark.asyncio
    async def test_run_procedure(self):
        """Test running a procedure."""
        from domains.procedures import ProcedureTools

        client = make_client()
        await ProcedureTools(client, Redactor()).run_procedure({"procedure": "nightly"})

        client.execute.assert_awaited_once_with("RunProcedure", {"procedure": "nightly"})


class TestActionTools:
    """Tests for the Actions domain."""

    @pytest.mark.asyncio
    async def test_list_actions(self):
        """Test actions list their last run time."""
        from domains.actions import ActionTools

        client = make_client({"ListActions": [
            {"name": "cleanup", "info": {"state": "Ok", "last_run_at": 1704067200000}},
        ]})

        response = await ActionTools(client, Redactor()).list_actions({})

        assert response.text == (
            "Found 1 action(s):\n- cleanup [Ok], last_run=2024-01-01T00:00:00.000Z"
        )

    @pytest.mark.asyncio
    async def test_get_action_running_count(self):
        """Test the number of running instances is reported."""
        from domains.actions import ActionTools

        client = make_client({
            "GetAction": {"name": "cleanup", "config": {"run_at_startup": True}},
            "GetActionActionState": {"running": 2},
        })

        response = await ActionTools(client, Redactor()).get_action({"action": "cleanup"})

        lines = response.text.splitlines()
        assert "Run at startup: true" in lines
        assert lines[-1] == "Currently: 2 instance(s) running"

    @pytest.mark.asyncio
    async def test_run_action(self):
        """Test running an action."""
        from domains.actions import ActionTools

        client = make_client()
        await ActionTools(client, Redactor()).run_action({"action": "cleanup"})

        client.execute.assert_awaited_once_with("RunAction", {"action": "cleanup"})


class TestBuilderTools:
    """Tests for the Builders domain."""

    @pytest.mark.asyncio
    async def test_list_builders(self):
        """Test builders list their type and instance."""
        from domains.builders import BuilderTools

        client = make_client({"ListBuilders": [
            {"name": "aws", "info": {"builder_type": "Aws", "instance_type": "c5.large"}},
        ]})

        response = await BuilderTools(client, Redactor()).list_builders({})

        assert response.text == "Found 1 builder(s):\n- aws type=Aws, instance=c5.large"

    @pytest.mark.asyncio
    async def test_get_builder_single_read(self):
        """Test builder details come from one read."""
        from domains.builders import BuilderTools

        client = make_client({"GetBuilder": {
            "name": "aws",
            "config": {"type": "Aws", "params": {"region": "us-east-1"}},
        }})

        response = await BuilderTools(client, Redactor()).get_builder({"builder": "aws"})

        client.read.assert_awaited_once_with("GetBuilder", {"builder": "aws"})
        lines = response.text.splitlines()
        assert "Type: Aws" in lines
        assert "Instance type: unknown" in lines
        assert "Region: us-east-1" in lines


class TestAlerterTools:
    """Tests for the Alerters domain."""

    @pytest.mark.asyncio
    async def test_list_alerters(self):
        """Test alerters list their endpoint type and enabled flag."""
        from domains.alerters import AlerterTools

        client = make_client({"ListAlerters": [
            {"name": "slack", "info": {"endpoint_type": "Slack", "enabled": True}},
        ]})

        response = await AlerterTools(client, Redactor()).list_alerters({})

        assert response.text == "Found 1 alerter(s):\n- slack type=Slack, enabled=true"

    @pytest.mark.asyncio
    async def test_get_alerter(self):
        """Test alerter details."""
        from domains.alerters import AlerterTools

        client = make_client({"GetAlerter": {
            "name": "slack",
            "config": {"endpoint": {"type": "Slack"}},
        }})

        response = await AlerterTools(client, Redactor()).get_alerter({"alerter": "slack"})

        client.read.assert_awaited_once_with("GetAlerter", {"alerter": "slack"})
        assert "Enabled: false" in response.text
        assert "Endpoint type: Slack" in response.text

    @pytest.mark.asyncio
    async def test_get_alerter_failure_redacted(self):
        """Test a failed read hides the key."""
        from domains.alerters import AlerterTools

        client = make_client({"GetAlerter": RuntimeError(f"401 for {API_KEY}")})

        response = await AlerterTools(client, Redactor([API_KEY])).get_alerter({"alerter": "slack"})

        assert response.text == "Error getting alerter 'slack': 401 for [REDACTED]"


class TestResourceSyncTools:
    """Tests for the Resource Syncs domain."""

    @pytest.mark.asyncio
    async def test_get_resource_sync(self):
        """Test sync details show pending work and the syncing state."""
        from domains.resource_syncs import ResourceSyncTools

        client = make_client({
            "GetResourceSync": {
                "name": "infra",
                "info": {
                    "last_sync_ts": 1704067200000,
                    "pending_error": "conflict on stack web",
                    "resource_updates": [{}, {}],
                },
                "config": {"resource_path": ["stacks.toml", "deployments.toml"]},
            },
            "GetResourceSyncActionState": {"syncing": True},
        })

        response = await ResourceSyncTools(client, Redactor()).get_resource_sync(
            {"resource_sync": "infra"}
        )

        lines = response.text.splitlines()
        assert "Last synced: 2024-01-01T00:00:00.000Z" in lines
        assert "Pending error: conflict on stack web" in lines
        assert "Pending resource updates: 2" in lines
        assert "Resource paths: stacks.toml, deployments.toml" in lines
        assert lines[-1] == "Currently: syncing"
