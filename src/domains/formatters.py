"""Plain-text renderers for Komodo API responses.

Every tool answers with short, model-friendly text: one line per resource
in lists, key fields only in details. The functions here take the decoded
JSON (dicts and lists) exactly as Komodo returns it.
"""

from datetime import datetime, timezone
from typing import Any, Optional

# Helpers


def _oid(resource: dict[str, Any]) -> str:
    return (resource.get("_id") or {}).get("$oid") or "unknown"


def _flag(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    return "unknown" if value is None else str(value)


def _num(value: Any, digits: int) -> str:
    return f"{float(value or 0):.{digits}f}"


def _percent(used: Any, total: Any) -> str:
    if not total or total <= 0:
        return "?"
    return f"{(used or 0) / total * 100:.0f}"


def format_timestamp(ms: Any) -> str:
    """Millisecond epoch to ISO-8601 UTC, e.g. 2024-01-01T00:00:00.000Z."""
    dt = datetime.fromtimestamp(float(ms) / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_version(version: Optional[dict[str, Any]]) -> str:
    if not version:
        return "0.0.0"
    return f"{version.get('major', 0)}.{version.get('minor', 0)}.{version.get('patch', 0)}"


def _tags_suffix(item: dict[str, Any]) -> str:
    tags = item.get("tags") or []
    return f", tags={','.join(tags)}" if tags else ""


def _tags_line(resource: dict[str, Any]) -> Optional[str]:
    tags = resource.get("tags") or []
    return f"Tags: {', '.join(tags)}" if tags else None


def active_actions(state: Optional[dict[str, Any]]) -> list[str]:
    """Names of the action-state flags that are currently true."""
    if not state:
        return []
    return [key.replace("_", " ") for key, value in state.items() if value is True]


def format_action_state(state: Optional[dict[str, Any]]) -> Optional[str]:
    running = active_actions(state)
    if not running:
        return None
    return f"Currently: {', '.join(running)}"


def _header(resource: dict[str, Any]) -> list[str]:
    return [
        f"Name: {resource.get('name')}",
        f"ID: {_oid(resource)}",
        f"Description: {resource.get('description') or '(none)'}",
    ]


def _git_line(cfg: dict[str, Any]) -> Optional[str]:
    if not cfg.get("repo"):
        return None
    return f"Repo: {cfg.get('git_provider')}/{cfg['repo']} (branch: {cfg.get('branch')})"


def _join(sections: list[Optional[str]]) -> str:
    return "\n".join(s for s in sections if s)


def _list(items: list[dict[str, Any]], noun: str, render, empty: Optional[str] = None) -> str:
    if not items:
        return empty or f"No {noun}s found."
    lines = [render(item) for item in items]
    return f"Found {len(items)} {noun}(s):\n" + "\n".join(lines)


# Servers


def format_server_list(servers: list[dict[str, Any]]) -> str:
    def render(s: dict[str, Any]) -> str:
        info = s.get("info") or {}
        region = f", region={info['region']}" if info.get("region") else ""
        return (
            f"- {s.get('name')} [{info.get('state')}] "
            f"address={info.get('address')}{region}{_tags_suffix(s)}"
        )
    return _list(servers, "server", render)


def format_server_detail(
    server: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(server)
    cfg = server.get("config")
    if cfg:
        sections.append(f"Address: {cfg.get('address')}")
        if cfg.get("region"):
            sections.append(f"Region: {cfg['region']}")
        sections.append(f"Enabled: {_flag(cfg.get('enabled'))}")
        sections.append(f"Stats monitoring: {_flag(cfg.get('stats_monitoring'))}")
        sections.append(f"Auto prune: {_flag(cfg.get('auto_prune'))}")
    sections.append(_tags_line(server))
    sections.append(format_action_state(action_state))
    return _join(sections)


def format_system_stats(stats: dict[str, Any]) -> str:
    used = stats.get("mem_used_gb") or 0
    total = stats.get("mem_total_gb") or 0
    lines = [
        f"CPU: {_num(stats.get('cpu_perc'), 1)}%",
        f"Memory: {_num(used, 1)}/{_num(total, 1)} GB ({_percent(used, total)}%)",
    ]
    load = stats.get("load_average")
    if load:
        lines.append(
            f"Load: {_num(load.get('one'), 2)} / {_num(load.get('five'), 2)} "
            f"/ {_num(load.get('fifteen'), 2)}"
        )
    for disk in stats.get("disks") or []:
        disk_used = disk.get("used_gb") or 0
        disk_total = disk.get("total_gb") or 0
        lines.append(
            f"Disk {disk.get('mount')}: {_num(disk_used, 1)}/{_num(disk_total, 1)} GB "
            f"({_percent(disk_used, disk_total)}%)"
        )
    return "\n".join(lines)


def format_system_info(info: dict[str, Any]) -> str:
    lines = []
    if info.get("host_name"):
        lines.append(f"Hostname: {info['host_name']}")
    if info.get("os"):
        lines.append(f"OS: {info['os']}")
    if info.get("kernel"):
        lines.append(f"Kernel: {info['kernel']}")
    lines.append(f"CPU: {info.get('cpu_brand')}")
    if info.get("core_count"):
        lines.append(f"Cores: {info['core_count']}")
    return "\n".join(lines)


def format_process_list(processes: list[dict[str, Any]], limit: int = 15) -> str:
    """Top processes by CPU usage as a fixed-width table."""
    if not processes:
        return "No processes found."
    top = sorted(processes, key=lambda p: p.get("cpu_perc") or 0, reverse=True)[:limit]
    header = "PID      CPU%    MEM(MB)  NAME"
    rows = [
        f"{str(p.get('pid')):<9}{_num(p.get('cpu_perc'), 1):>5}    "
        f"{_num(p.get('mem_mb'), 0):>7}  {p.get('name')}"
        for p in top
    ]
    return f"Top {len(top)} processes:\n{header}\n" + "\n".join(rows)


# Stacks


def format_stack_list(stacks: list[dict[str, Any]]) -> str:
    def render(s: dict[str, Any]) -> str:
        info = s.get("info") or {}
        return (
            f"- {s.get('name')} [{info.get('state')}] "
            f"server={info.get('server_id') or 'unassigned'}, "
            f"services={len(info.get('services') or [])}{_tags_suffix(s)}"
        )
    return _list(stacks, "stack", render)


def format_stack_detail(
    stack: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(stack)
    info = stack.get("info")
    if info:
        if info.get("deployed_project_name"):
            sections.append(f"Project: {info['deployed_project_name']}")
        if info.get("deployed_hash"):
            sections.append(f"Deployed commit: {info['deployed_hash']}")
        if info.get("latest_hash"):
            sections.append(f"Latest commit: {info['latest_hash']}")
    cfg = stack.get("config")
    if cfg:
        sections.append(f"Server: {cfg.get('server_id') or 'unassigned'}")
        sections.append(_git_line(cfg))
        sections.append(f"Auto-pull: {_flag(cfg.get('auto_pull'))}")
        sections.append(f"Webhook enabled: {_flag(cfg.get('webhook_enabled'))}")
    sections.append(_tags_line(stack))
    sections.append(format_action_state(action_state))
    return _join(sections)


def format_stack_service_list(services: list[dict[str, Any]]) -> str:
    def render(s: dict[str, Any]) -> str:
        parts = [f"- {s.get('service')}"]
        if s.get("image"):
            parts.append(f"image={s['image']}")
        container = s.get("container")
        if container:
            parts.append(f"state={container.get('state')}")
            if container.get("status"):
                parts.append(f"status={container['status']}")
        else:
            parts.append("state=not running")
        if s.get("update_available"):
            parts.append("(update available)")
        return " ".join(parts)
    return _list(services, "service", render, empty="No services found in this stack.")


def format_stacks_summary(summary: dict[str, Any]) -> str:
    return "\n".join([
        "Stacks summary:",
        f"  Total: {summary.get('total', 0)}",
        f"  Running: {summary.get('running', 0)}",
        f"  Stopped: {summary.get('stopped', 0)}",
        f"  Down: {summary.get('down', 0)}",
        f"  Unhealthy: {summary.get('unhealthy', 0)}",
        f"  Unknown: {summary.get('unknown', 0)}",
    ])


# Deployments


def format_deployment_list(deployments: list[dict[str, Any]]) -> str:
    def render(d: dict[str, Any]) -> str:
        info = d.get("info") or {}
        return (
            f"- {d.get('name')} [{info.get('state')}] "
            f"image={info.get('image') or '(none)'}, "
            f"server={info.get('server_id') or 'unassigned'}{_tags_suffix(d)}"
        )
    return _list(deployments, "deployment", render)


def format_deployment_detail(
    deployment: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(deployment)
    cfg = deployment.get("config")
    if cfg:
        sections.append(f"Server: {cfg.get('server_id') or 'unassigned'}")
        image = cfg.get("image") or {}
        params = image.get("params") or {}
        if image.get("type") == "Image":
            sections.append(f"Image: {params.get('image') or '(none)'}")
        elif image.get("type") == "Build":
            sections.append(f"Build: {params.get('build_id') or '(none)'}")
        sections.append(f"Network: {cfg.get('network')}")
        if cfg.get("restart"):
            sections.append(f"Restart: {cfg['restart']}")
        sections.append(f"Redeploy on build: {_flag(bool(cfg.get('redeploy_on_build')))}")
    sections.append(_tags_line(deployment))
    sections.append(format_action_state(action_state))
    return _join(sections)


def format_deployments_summary(summary: dict[str, Any]) -> str:
    return "\n".join([
        "Deployments summary:",
        f"  Total: {summary.get('total', 0)}",
        f"  Running: {summary.get('running', 0)}",
        f"  Stopped: {summary.get('stopped', 0)}",
        f"  Not deployed: {summary.get('not_deployed', 0)}",
        f"  Unhealthy: {summary.get('unhealthy', 0)}",
        f"  Unknown: {summary.get('unknown', 0)}",
    ])


# Builds


def format_build_list(builds: list[dict[str, Any]]) -> str:
    def render(b: dict[str, Any]) -> str:
        info = b.get("info") or {}
        repo = f", repo={info['repo']}" if info.get("repo") else ""
        return (
            f"- {b.get('name')} [{info.get('state')}] "
            f"v{format_version(info.get('version'))}{repo}{_tags_suffix(b)}"
        )
    return _list(builds, "build", render)


def format_build_detail(
    build: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(build)
    info = build.get("info")
    if info:
        if info.get("last_built_at"):
            sections.append(f"Last built: {format_timestamp(info['last_built_at'])}")
        if info.get("built_hash"):
            sections.append(f"Built commit: {info['built_hash']}")
        if info.get("latest_hash"):
            sections.append(f"Latest commit: {info['latest_hash']}")
    cfg = build.get("config")
    if cfg:
        if cfg.get("builder_id"):
            sections.append(f"Builder: {cfg['builder_id']}")
        if cfg.get("version"):
            sections.append(f"Version: {format_version(cfg['version'])}")
        sections.append(_git_line(cfg))
        sections.append(f"Build path: {cfg.get('build_path')}")
        sections.append(f"Dockerfile: {cfg.get('dockerfile_path')}")
    sections.append(_tags_line(build))
    if action_state and action_state.get("building"):
        sections.append("Currently: building")
    return _join(sections)


# Repos


def format_repo_list(repos: list[dict[str, Any]]) -> str:
    def render(r: dict[str, Any]) -> str:
        info = r.get("info") or {}
        return (
            f"- {r.get('name')} [{info.get('state')}] "
            f"repo={info.get('repo') or '(none)'}, "
            f"server={info.get('server_id') or 'unassigned'}{_tags_suffix(r)}"
        )
    return _list(repos, "repo", render)


def _hook_line(label: str, hook: Optional[dict[str, Any]]) -> Optional[str]:
    if not hook:
        return None
    return f"{label}: {hook.get('path') or ''} {hook.get('command') or ''}".strip()


def format_repo_detail(
    repo: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(repo)
    info = repo.get("info")
    if info:
        if info.get("last_pulled_at"):
            sections.append(f"Last pulled: {format_timestamp(info['last_pulled_at'])}")
        if info.get("built_hash"):
            sections.append(f"Built commit: {info['built_hash']}")
        if info.get("latest_hash"):
            sections.append(f"Latest commit: {info['latest_hash']}")
    cfg = repo.get("config")
    if cfg:
        sections.append(f"Server: {cfg.get('server_id') or 'unassigned'}")
        sections.append(_git_line(cfg))
        sections.append(_hook_line("On clone", cfg.get("on_clone")))
        sections.append(_hook_line("On pull", cfg.get("on_pull")))
    sections.append(_tags_line(repo))
    sections.append(format_action_state(action_state))
    return _join(sections)


# Procedures and actions


def _schedule_line(cfg: dict[str, Any]) -> Optional[str]:
    if not cfg.get("schedule"):
        return None
    disabled = "" if cfg.get("schedule_enabled") else " (disabled)"
    return f"Schedule: {cfg['schedule']}{disabled}"


def format_procedure_list(procedures: list[dict[str, Any]]) -> str:
    def render(p: dict[str, Any]) -> str:
        info = p.get("info") or {}
        return f"- {p.get('name')} [{info.get('state')}] stages={info.get('stages')}{_tags_suffix(p)}"
    return _list(procedures, "procedure", render)


def format_procedure_detail(
    procedure: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(procedure)
    cfg = procedure.get("config")
    if cfg:
        stages = cfg.get("stages") or []
        sections.append(f"Stages: {len(stages)}")
        for stage in stages:
            disabled = "" if stage.get("enabled") else " (disabled)"
            executions = len(stage.get("executions") or [])
            sections.append(f"  - {stage.get('name')}{disabled}: {executions} execution(s)")
        sections.append(f"Webhook enabled: {_flag(cfg.get('webhook_enabled'))}")
        sections.append(_schedule_line(cfg))
    sections.append(_tags_line(procedure))
    if action_state and action_state.get("running"):
        sections.append("Currently: running")
    return _join(sections)


def format_action_list(actions: list[dict[str, Any]]) -> str:
    def render(a: dict[str, Any]) -> str:
        info = a.get("info") or {}
        last_run = (
            f", last_run={format_timestamp(info['last_run_at'])}"
            if info.get("last_run_at") else ""
        )
        return f"- {a.get('name')} [{info.get('state')}]{last_run}{_tags_suffix(a)}"
    return _list(actions, "action", render)


def format_action_detail(
    action: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(action)
    cfg = action.get("config")
    if cfg:
        sections.append(f"Webhook enabled: {_flag(cfg.get('webhook_enabled'))}")
        sections.append(_schedule_line(cfg))
        sections.append(f"Run at startup: {_flag(cfg.get('run_at_startup'))}")
    sections.append(_tags_line(action))
    # an action can run several instances at once
    running = (action_state or {}).get("running") or 0
    if running > 0:
        sections.append(f"Currently: {running} instance(s) running")
    return _join(sections)


# Builders and alerters


def format_builder_list(builders: list[dict[str, Any]]) -> str:
    def render(b: dict[str, Any]) -> str:
        info = b.get("info") or {}
        instance = f", instance={info['instance_type']}" if info.get("instance_type") else ""
        return f"- {b.get('name')} type={info.get('builder_type')}{instance}{_tags_suffix(b)}"
    return _list(builders, "builder", render)


def format_builder_detail(builder: dict[str, Any]) -> str:
    sections: list[Optional[str]] = _header(builder)
    cfg = builder.get("config")
    if cfg:
        params = cfg.get("params") or {}
        sections.append(f"Type: {cfg.get('type')}")
        if cfg.get("type") == "Server":
            sections.append(f"Server: {params.get('server_id')}")
        elif cfg.get("type") == "Aws":
            sections.append(f"Instance type: {params.get('instance_type') or 'unknown'}")
            sections.append(f"Region: {params.get('region') or 'unknown'}")
    sections.append(_tags_line(builder))
    return _join(sections)


def format_alerter_list(alerters: list[dict[str, Any]]) -> str:
    def render(a: dict[str, Any]) -> str:
        info = a.get("info") or {}
        return (
            f"- {a.get('name')} type={info.get('endpoint_type')}, "
            f"enabled={_flag(info.get('enabled'))}{_tags_suffix(a)}"
        )
    return _list(alerters, "alerter", render)


def format_alerter_detail(alerter: dict[str, Any]) -> str:
    sections: list[Optional[str]] = _header(alerter)
    cfg = alerter.get("config")
    if cfg:
        sections.append(f"Enabled: {_flag(bool(cfg.get('enabled')))}")
        if cfg.get("endpoint"):
            sections.append(f"Endpoint type: {cfg['endpoint'].get('type')}")
    sections.append(_tags_line(alerter))
    return _join(sections)


# Resource syncs


def format_resource_sync_list(syncs: list[dict[str, Any]]) -> str:
    def render(s: dict[str, Any]) -> str:
        info = s.get("info") or {}
        managed = ", managed" if info.get("managed") else ""
        return (
            f"- {s.get('name')} [{info.get('state')}] "
            f"repo={info.get('repo') or '(none)'}{managed}{_tags_suffix(s)}"
        )
    return _list(syncs, "resource sync", render)


def format_resource_sync_detail(
    sync: dict[str, Any],
    action_state: Optional[dict[str, Any]] = None,
) -> str:
    sections: list[Optional[str]] = _header(sync)
    info = sync.get("info")
    if info:
        if info.get("last_sync_ts"):
            sections.append(f"Last synced: {format_timestamp(info['last_sync_ts'])}")
        if info.get("last_sync_hash"):
            sections.append(f"Last sync commit: {info['last_sync_hash']}")
        if info.get("pending_error"):
            sections.append(f"Pending error: {info['pending_error']}")
        pending = len(info.get("resource_updates") or [])
        if pending > 0:
            sections.append(f"Pending resource updates: {pending}")
    cfg = sync.get("config")
    if cfg:
        sections.append(_git_line(cfg))
        paths = cfg.get("resource_path") or []
        if paths:
            sections.append(f"Resource paths: {', '.join(paths)}")
    sections.append(_tags_line(sync))
    if action_state and action_state.get("syncing"):
        sections.append("Currently: syncing")
    return _join(sections)


# Updates and logs


def _update_result(update: dict[str, Any]) -> str:
    status = update.get("status") or "Unknown"
    if status == "Complete":
        return "OK" if update.get("success") else "FAILED"
    return status


def format_update_list(updates: list[dict[str, Any]], next_page: Optional[int] = None) -> str:
    if not updates:
        return "No updates found."
    lines = []
    for u in updates:
        target = u.get("target") or {}
        who = u.get("username") or u.get("operator")
        lines.append(
            f"- [{_update_result(u)}] {u.get('operation')} → "
            f"{target.get('type')}/{target.get('id')} "
            f"({format_timestamp(u.get('start_ts') or 0)}, by {who}) id={u.get('id')}"
        )
    text = f"Found {len(updates)} update(s):\n" + "\n".join(lines)
    if next_page is not None:
        text += f"\n\nMore results available. Use page={next_page} to fetch the next page."
    return text


def format_update_detail(update: dict[str, Any]) -> str:
    target = update.get("target") or {}
    sections = [
        f"Operation: {update.get('operation')}",
        f"Target: {target.get('type')}/{target.get('id')}",
        f"Status: {update.get('status')}",
        f"Success: {_flag(update.get('success'))}",
        f"Operator: {update.get('operator')}",
        f"Started: {format_timestamp(update.get('start_ts') or 0)}",
    ]
    if update.get("end_ts"):
        sections.append(f"Ended: {format_timestamp(update['end_ts'])}")
    if update.get("version"):
        sections.append(f"Version: {format_version(update['version'])}")
    if update.get("commit_hash"):
        sections.append(f"Commit: {update['commit_hash']}")

    logs = update.get("logs") or []
    if logs:
        sections.append(f"\nLogs ({len(logs)} stage(s)):")
        for log in logs:
            sections.append(f"\n--- [{'OK' if log.get('success') else 'FAILED'}] {log.get('stage')} ---")
            if log.get("command"):
                sections.append(f"Command: {log['command']}")
            if log.get("stdout"):
                sections.append(f"stdout:\n{log['stdout']}")
            if log.get("stderr"):
                sections.append(f"stderr:\n{log['stderr']}")
    return "\n".join(sections)


def format_log(log: dict[str, Any]) -> str:
    output = log.get("stdout") or log.get("stderr") or "(no output)"
    return f"[{'OK' if log.get('success') else 'FAILED'}] {log.get('stage')}\n{output}"


def format_update_created(update: dict[str, Any], description: str) -> str:
    """Acknowledgement for an execute call, pointing at komodo_get_update while it runs."""
    update_id = _oid(update)
    status = update.get("status") or "Queued"
    lines = [
        f"✓ {description}",
        f"Update ID: {update_id}",
        f"Status: {status}",
    ]
    if status == "Complete":
        lines.append(f"Result: {'Success' if update.get('success') else 'Failed'}")
        logs = update.get("logs") or []
        if logs and logs[-1].get("stderr"):
            lines.append(f"Error: {logs[-1]['stderr'].splitlines()[0]}")
    else:
        verb = "queued" if status == "Queued" else "in progress"
        lines.append(
            f"\nThe operation is {verb}. Use komodo_get_update (Update ID: {update_id}) "
            "to check status and view logs."
        )
    return "\n".join(lines)


# Write results


def format_resource_created(resource_type: str, resource: dict[str, Any]) -> str:
    resource_id = (resource.get("_id") or {}).get("$oid")
    name = resource.get("name")
    if resource_id and resource_type != "Variable":
        lines = [f"Created {resource_type} '{name}' (ID: {resource_id})"]
    else:
        lines = [f"Created {resource_type} '{name}'"]
    if resource.get("description"):
        lines.append(f"Description: {resource['description']}")
    lines.append("Use the corresponding get tool to view full details.")
    return "\n".join(lines)


def format_resource_updated(resource_type: str, resource: dict[str, Any]) -> str:
    return (
        f"Updated {resource_type} '{resource.get('name')}'\n"
        "Use the corresponding get tool to verify changes."
    )


def format_resource_deleted(resource_type: str, resource: dict[str, Any]) -> str:
    return f"Deleted {resource_type} '{resource.get('name')}'"
