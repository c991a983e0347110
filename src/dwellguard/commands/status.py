"""Command: usage against limits for a day."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

import click

from dwellguard.commands._base import DwellCommand

if TYPE_CHECKING:
    from dwellguard.commands._context import AppContext


@click.command(
    cls=DwellCommand,
    examples="""\
  dwellguard status
  dwellguard status --day 2024-05-01
  dwellguard --json status""",
)
@click.option(
    "--day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Ledger day to report (default: today).",
)
@click.pass_obj
def status(app: AppContext, day: datetime | None) -> None:
    """Show time spent per domain, remaining allowance, and blocks."""
    from dwellguard.services.status import StatusService

    target: date | None = day.date() if day is not None else None
    app.emit(StatusService(app.host).summary(target))
