"""Command: long-lived JSON-lines event loop."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from dwellguard.commands._base import DwellCommand

if TYPE_CHECKING:
    from dwellguard.commands._context import AppContext
    from dwellguard.services.result import ServiceResult


@click.command(
    cls=DwellCommand,
    examples="""\
  native-host | dwellguard listen
  dwellguard --json listen < events.jsonl
  dwellguard listen --tick-seconds 0 < events.jsonl""",
)
@click.option(
    "--tick-seconds",
    type=float,
    default=None,
    help="Override the persistence tick period (0 disables the ticker).",
)
@click.pass_obj
def listen(app: AppContext, tick_seconds: float | None) -> None:
    """Read platform events from stdin, one JSON object per line.

    Window-close commands are written to stdout as JSON lines. With
    ``--json`` every handler result is written there too.
    """
    from dwellguard.output.formatters import format_json_line
    from dwellguard.services.dispatcher import EventDispatcher

    if tick_seconds is None:
        tick_seconds = app.settings.engine.tick_interval_minutes * 60

    def on_result(result: ServiceResult) -> None:
        if app.settings.json_output:
            click.echo(format_json_line(result))
        elif not result.ok and not app.settings.quiet:
            msg = result.error.message if result.error else "Unknown error"
            click.echo(f"ERROR: {result.op} - {msg}", err=True)

    dispatcher = EventDispatcher(
        app.router,
        app.mirror,
        on_result=on_result,
        tick_seconds=tick_seconds,
    )
    handled = dispatcher.run(click.get_text_stream("stdin"))
    if app.settings.verbose:
        click.echo(f"Handled {handled} message(s)", err=True)
