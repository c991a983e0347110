"""Command: clear every block rule and reconcile."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from dwellguard.commands._base import DwellCommand

if TYPE_CHECKING:
    from dwellguard.commands._context import AppContext


@click.command(
    cls=DwellCommand,
    examples="""\
  dwellguard reset
  dwellguard --json reset""",
)
@click.pass_obj
def reset(app: AppContext) -> None:
    """Remove all dynamic rules, then re-block domains already over today's limit."""
    app.emit(app.router.reset())
