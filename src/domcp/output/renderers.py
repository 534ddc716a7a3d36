"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from domcp.output.console import create_console, get_output, style_for

if TYPE_CHECKING:
    from rich.console import Console

    from domcp.services.result import ServiceResult

_Renderer = Callable[..., None]

# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    if verbose:
        _render_meta(console, result)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal, line-oriented output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    data = result.data
    match result.op:
        case "draft_refactoring_plan":
            return "\n".join(f"{a['kind']} {a['target_path']}" for a in data["actions"])
        case "compare_model":
            return "\n".join(_change_line(c) for c in data["changes"])
        case "list_violations":
            return "\n".join(
                f"{v['severity']} {v['rule_id']} {v['scope']}" for v in data["violations"]
            )
        case "list_projects":
            return "\n".join(item["workspace_id"] for item in data["items"])
        case "validate_dependency":
            return "allowed" if data["allowed"] else "denied"
        case "suggest_path" | "suggest_file_path":
            return str(data["path"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    ok = Text("OK", style="domcp.ok")
    console.print(ok, Text(f"  {result.op}", style="domcp.op"), sep="")


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="domcp.key")
    if key in ("path", "target_path", "workspace_id", "workspace"):
        v = Text(str(value), style="domcp.path")
    elif key == "name":
        v = Text(str(value), style="domcp.name")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _change_line(change: dict[str, Any]) -> str:
    where = f"{change['context']}." if change.get("context") else ""
    if change.get("previous_name"):
        return f"{change['label']} {where}{change['previous_name']} -> {change['name']}"
    return f"{change['label']} {where}{change['name']}"


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the telemetry span tree (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_telemetry_tree(console, value, indent=4)
        else:
            console.print(f"    {key}: {value}")


def _render_telemetry_tree(console: Console, span: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"
    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    if span.get("annotations"):
        line += "  (" + ", ".join(f"{k}={v}" for k, v in span["annotations"].items()) + ")"
    console.print(line)
    for child in span.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _table(*columns: str) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for col in columns:
        table.add_column(col)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="domcp.error"),
        Text(f"  {result.op}{code}", style="domcp.op"),
        Text(f"  {msg}"),
        sep="",
    )
    if verbose and err and err.detail:
        for key, value in err.detail.items():
            _field(console, key, value)


# ── Operation renderers ───────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_compare(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    _status_line(console, result)
    if not data["changes"]:
        console.print("  Working model matches the baseline.")
        return
    table = _table("Change", "Context", "Name", "Fields")
    for change in data["changes"]:
        name = change["name"]
        if change.get("previous_name"):
            name = f"{change['previous_name']} -> {name}"
        table.add_row(
            change["label"],
            change.get("context") or "",
            name,
            ", ".join(change.get("field_diffs", {})),
        )
    console.print(table)
    console.print(f"  {data['count']} change(s)")


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    _status_line(console, result)
    if not data["actions"]:
        console.print("  Nothing to do.")
    else:
        table = _table("Priority", "Action", "Path", "Note")
        for action in data["actions"]:
            path = action["target_path"]
            if action.get("source_path"):
                path = f"{action['source_path']} -> {path}"
            priority = action["priority"]
            table.add_row(
                Text(priority, style=style_for("priority", priority)),
                action["kind"],
                Text(path, style="domcp.path"),
                action["note"],
            )
        console.print(table)
    if data["migration_notes"]:
        console.print(Text("  Migration notes:", style="domcp.warning"))
        for note in data["migration_notes"]:
            console.print(Text(f"    - {note}"))


def _render_violations(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    _status_line(console, result)
    if not data["violations"]:
        console.print("  No violations.")
        return
    by_category: dict[str, list[dict[str, Any]]] = {}
    for v in data["violations"]:
        by_category.setdefault(v["category"], []).append(v)
    for category, items in by_category.items():
        table = _table("Severity", "Rule", "Scope", "Message")
        table.title = category
        for v in items:
            table.add_row(
                Text(v["severity"], style=style_for("severity", v["severity"])),
                v["rule_id"],
                v["scope"],
                v["message"],
            )
        console.print(table)
    console.print(
        f"  {data['error_count']} error(s), {data['warning_count']} warning(s), "
        f"{data['info_count']} info"
    )


def _render_projects(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = _table("Workspace", "Project", "Updated")
    if verbose:
        table.add_column("Created", style="dim")
    for item in result.data["items"]:
        row = [item["workspace_id"], item["project_name"], item["updated_at"]]
        if verbose:
            row.append(item["created_at"])
        table.add_row(*row)
    console.print(table)


def _render_dependency(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    if data["allowed"]:
        verdict = Text("ALLOWED", style="domcp.ok")
    else:
        verdict = Text("DENIED", style="domcp.error")
    console.print(verdict, Text(f"  {data['from_context']} -> {data['to_context']}"), sep="")
    console.print(Text(f"  {data['reason']}"))


_OP_RENDERERS: dict[str, _Renderer] = {
    "compare_model": _render_compare,
    "draft_refactoring_plan": _render_plan,
    "list_violations": _render_violations,
    "list_projects": _render_projects,
    "validate_dependency": _render_dependency,
}
