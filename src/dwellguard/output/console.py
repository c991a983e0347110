"""Rich Console factory and theme for dwellguard output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DWELL_THEME = Theme(
    {
        "dwell.ok": "bold green",
        "dwell.error": "bold red",
        "dwell.warning": "bold yellow",
        "dwell.op": "bold cyan",
        "dwell.key": "dim",
        "dwell.id": "bold blue",
        "dwell.domain": "bold",
        "dwell.blocked": "bold red",
        "dwell.near": "yellow",
        "dwell.clear": "green",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DWELL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_usage(used: int, limit: int | None, *, blocked: bool) -> str:
    """Rich style for a usage row: blocked, within 80% of the limit, or clear."""
    if blocked:
        return "dwell.blocked"
    if limit and used * 5 >= limit * 4:
        return "dwell.near"
    return "dwell.clear"
