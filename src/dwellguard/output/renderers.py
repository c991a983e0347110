"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from dwellguard.output.console import create_console, get_output, style_for_usage
from dwellguard.services._helpers import format_duration

if TYPE_CHECKING:
    from rich.console import Console

    from dwellguard.services.result import ServiceResult


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
        return f"ERROR: {result.op} - {msg}"

    domains = result.data.get("domains")
    if domains and isinstance(domains, list):
        return "\n".join(str(item.get("domain", "")) for item in domains if isinstance(item, dict))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="dwell.ok")
    op = Text(f"  {result.op}", style="dwell.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="dwell.key")
    if key.endswith("_id") or key.endswith("_ids"):
        v = Text(str(value), style="dwell.id")
    elif key == "domain":
        v = Text(str(value), style="dwell.domain")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _limit_text(seconds: int | None) -> str:
    return format_duration(seconds) if seconds is not None else "-"


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="dwell.error")
    op = Text(f"  {result.op}", style="dwell.op")
    console.print(label, op, Text(" - "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, dict) and not verbose:
            continue
        _field(console, key, value)


def _render_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the usage report as a table, one row per domain."""
    d = result.data
    console.print(Text(f"Usage for {d.get('day')}", style="bold"))

    domains = d.get("domains", [])
    if not domains:
        console.print("  No tracked domains.")
    else:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Domain", style="dwell.domain", no_wrap=True)
        table.add_column("Used", justify="right")
        table.add_column("Limit", justify="right")
        table.add_column("Remaining", justify="right")
        table.add_column("State")
        if verbose:
            table.add_column("Rule", style="dwell.id", justify="right")

        for row in domains:
            used = row.get("used_seconds", 0)
            limit = row.get("limit_seconds")
            blocked = bool(row.get("blocked"))
            style = style_for_usage(used, limit, blocked=blocked)
            if blocked:
                state = "blocked"
            elif limit is None:
                state = "untracked"
            else:
                state = "ok"
            cells = [
                row.get("domain", ""),
                format_duration(used),
                _limit_text(limit),
                _limit_text(row.get("remaining_seconds")),
                Text(state, style=style),
            ]
            if verbose:
                cells.append(str(row.get("rule_id", "")))
            table.add_row(*cells)
        console.print(table)

    active = d.get("active")
    if active:
        console.print(
            f"  tracking: {active['domain']} since {active['since']}"
            f" (+{format_duration(active['pending_seconds'])} pending)"
        )
    if verbose:
        _field(console, "rule_ids", d.get("rule_ids", []))
        _field(console, "last_reset_day", d.get("last_reset_day"))


def _render_policy(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    domains = result.data.get("domains", [])
    if not domains:
        console.print("No restricted domains.")
        return
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Domain", style="dwell.domain", no_wrap=True)
    table.add_column("Daily limit", justify="right")
    for row in domains:
        table.add_row(row["domain"], format_duration(row["limit_seconds"]))
    console.print(table)


def _render_policy_change(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "domain", d.get("domain"))
    if "limit_seconds" in d:
        _field(console, "daily_limit", format_duration(d["limit_seconds"]))


_EVENT_SUMMARY_KEYS = ("tracking", "flushed_seconds", "blocked_rule_ids", "cleared_rule_ids", "closed")


def _render_event(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render router handler results (one-shot ``event`` and ``reset``)."""
    _status_line(console, result)
    d = result.data
    if "skipped" in d:
        _field(console, "skipped", d["skipped"])
        return
    for key in _EVENT_SUMMARY_KEYS:
        if key in d:
            _field(console, key, d[key])
    if verbose:
        for key, value in d.items():
            if key not in _EVENT_SUMMARY_KEYS:
                _field(console, key, value)


_Renderer = Callable[..., None]

_OP_RENDERERS: dict[str, _Renderer] = {
    "status": _render_status,
    "policy_show": _render_policy,
    "policy_set": _render_policy_change,
    "policy_remove": _render_policy_change,
    "installed": _render_event,
    "startup": _render_event,
    "reset": _render_event,
    "alarm": _render_event,
    "tab_activated": _render_event,
    "tab_updated": _render_event,
    "tab_removed": _render_event,
    "window_focus_changed": _render_event,
    "window_created": _render_event,
    "settings_changed": _render_event,
}
