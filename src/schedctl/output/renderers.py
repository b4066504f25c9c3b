"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from schedctl.domain.fields import FIELD_ORDER
from schedctl.output.console import create_console, get_output, style_for_field

if TYPE_CHECKING:
    from rich.console import Console

    from schedctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item["name"]) for item in items if "name" in item)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="sched.ok")
    op = Text(f"  {result.op}", style="sched.op")
    console.print(label, op, sep="", end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="sched.key")
    if key == "profile":
        v = Text(str(value), style="sched.profile")
    elif key in ("path", "removed"):
        v = Text(str(value), style="sched.path")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(Text(f"    {k}: {v}"))


def _columns(entries: list[dict[str, Any]]) -> list[str]:
    """Union of entry keys; calendar fields in canonical order first."""
    keys: list[str] = [f.value for f in FIELD_ORDER if any(f.value in e for e in entries)]
    for entry in entries:
        for key in entry:
            if key not in keys:
                keys.append(key)
    return keys


def _cell(value: Any) -> str:
    if value is None:
        return "*"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value) if value else "*"
    return str(value)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="sched.error")
    op = Text(f"  {result.op}: ", style="sched.op")
    console.print(label, op, Text(msg), sep="", soft_wrap=True)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Expansion renderer ────────────────────────────────────────────────


def _render_expand(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """One table per expression: a row per interval or native trigger."""
    target = result.data.get("target", "intervals")
    for schedule in result.data.get("schedules", []):
        entries = schedule.get("entries", [])
        console.print(Text(str(schedule.get("expression", "")), style="sched.expr"))
        columns = _columns(entries)
        if not columns:
            console.print(Text("  every second (no constrained fields)", style="dim"))
            continue
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        for col in columns:
            table.add_column(col.title(), style=style_for_field(col), justify="right")
        for entry in entries:
            table.add_row(*(_cell(entry.get(col)) for col in columns))
        console.print(table)

    noun = "triggers" if target == "windows" else "intervals"
    console.print(f"\n{result.data.get('count', 0)} {noun} ({target})")


# ── Job renderers ─────────────────────────────────────────────────────


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Print each rendered job definition file under its name."""
    d = result.data
    console.print(
        Text(f"# {d.get('profile', '?')} ({d.get('backend', '?')})", style="sched.profile")
    )
    for name, content in d.get("files", {}).items():
        console.print()
        console.print(Text(f"# {name}", style="sched.path"))
        console.print(Text(content.rstrip("\n")), soft_wrap=True)


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render install/remove results."""
    _status_line(console, result)
    mutation_keys = (
        "profile",
        "backend",
        "permission",
        "label",
        "timer",
        "task",
        "path",
        "triggers",
        "removed",
    )
    for key in mutation_keys:
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        for entry in result.data.get("schedules", []):
            _field(console, "schedule", entry)
        _render_meta(console, result)


def _render_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render scheduler status: flat fields, then any raw tool output."""
    _status_line(console, result)
    output = ""
    for key, value in result.data.items():
        if key == "output":
            output = str(value)
            continue
        _field(console, key, value)
    if output:
        console.print()
        console.print(Text(output), soft_wrap=True)


# ── Profile renderers ─────────────────────────────────────────────────


def _render_profiles(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render configured profiles as a table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Profile", style="sched.profile", no_wrap=True)
    table.add_column("Command")
    table.add_column("Schedules", style="sched.expr")
    table.add_column("Permission")
    table.add_column("Priority")
    for item in items:
        table.add_row(
            str(item.get("name", "")),
            str(item.get("command", "")),
            "\n".join(item.get("schedules", [])) or "-",
            str(item.get("permission", "")),
            str(item.get("priority", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} profiles")
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "expand": _render_expand,
    "show": _render_show,
    "install": _render_mutation,
    "remove": _render_mutation,
    "status": _render_status,
    "list_profiles": _render_profiles,
}
