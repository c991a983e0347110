"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Host/router initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from dwellguard.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from dwellguard.config.settings import DwellSettings
    from dwellguard.infrastructure.browser import TabMirror
    from dwellguard.infrastructure.host import Host
    from dwellguard.services.result import ServiceResult
    from dwellguard.services.router import EventRouter


def emit_close_window(window_id: int) -> None:
    """Forward a window-close request to the platform as a JSON line."""
    click.echo(json.dumps({"command": "close_window", "windowId": window_id}))


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The host is lazily
    initialized on first use so ``--help`` and ``--version`` never
    trigger database access.
    """

    def __init__(self, settings: DwellSettings) -> None:
        self.settings = settings
        self._host: Host | None = None
        self._router: EventRouter | None = None
        self._mirror: TabMirror | None = None

        from dwellguard.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def host(self) -> Host:
        """The host instance (created lazily on first access)."""
        if self._host is None:
            from dwellguard.infrastructure.host import Host

            self._host = Host(self.settings)
            self._host.init_event_bus()
        return self._host

    @property
    def router(self) -> EventRouter:
        """Event router over a fresh tab mirror, subscribed to settings edits."""
        if self._router is None:
            from dwellguard.infrastructure.browser import TabMirror
            from dwellguard.services.router import EventRouter

            self._mirror = TabMirror(on_close_window=emit_close_window)
            self._router = EventRouter(self.host, self._mirror)
            self._router.attach()
        return self._router

    @property
    def mirror(self) -> TabMirror:
        """Tab table the router answers lookups from."""
        if self._mirror is None:
            self.router  # noqa: B018
        assert self._mirror is not None
        return self._mirror

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def close(self) -> None:
        if self._router is not None:
            self._router.detach()
        if self._host is not None:
            self._host.close()
