"""Command group: deliver a single platform event to the engine.

Each subcommand rehydrates state, handles one event, and exits, the way
the hosting runtime may stop the engine between any two events. Tab
details are passed as options and seed the in-memory tab mirror, since a
one-shot process has no memory of earlier tab messages.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from dwellguard.commands._base import DwellGroup
from dwellguard.domain.types import WINDOW_ID_NONE
from dwellguard.infrastructure.browser import TabInfo

if TYPE_CHECKING:
    from dwellguard.commands._context import AppContext

_EVENT_EXAMPLES = """\
  dwellguard event installed
  dwellguard event tab-activated 12 --window 1 --url https://youtube.com/watch
  dwellguard event tab-updated 12 --window 1 --url https://reddit.com/r/python
  dwellguard event window-focus --none
  dwellguard event window-created 7 --incognito
  dwellguard event alarm persist-timer"""


@click.group(cls=DwellGroup, examples=_EVENT_EXAMPLES)
@click.pass_obj
def event(app: AppContext) -> None:
    """Deliver one platform event (installed, tab, window, alarm)."""


@event.command(
    examples="""\
  dwellguard event installed
  dwellguard --json event installed"""
)
@click.pass_obj
def installed(app: AppContext) -> None:
    """First run or upgrade: reset rules, sweep old ledgers, reconcile."""
    app.emit(app.router.on_installed())


@event.command(examples="  dwellguard event startup")
@click.pass_obj
def startup(app: AppContext) -> None:
    """Browser start: same full initialization as ``installed``."""
    app.emit(app.router.on_startup())


@event.command(
    examples="""\
  dwellguard event alarm
  dwellguard event alarm persist-timer"""
)
@click.argument("name", required=False)
@click.pass_obj
def alarm(app: AppContext, name: str | None) -> None:
    """Persistence tick: flush the running timer and enforce limits."""
    app.emit(app.router.on_alarm(name or app.settings.engine.alarm_name))


@event.command(
    "tab-activated",
    examples="""\
  dwellguard event tab-activated 12 --window 1 --url https://youtube.com/
  dwellguard event tab-activated 12 --window 1""",
)
@click.argument("tab_id", type=int)
@click.option("--window", "window_id", type=int, default=1, show_default=True, help="Window id.")
@click.option("--url", default=None, help="URL the tab is showing.")
@click.pass_obj
def tab_activated(app: AppContext, tab_id: int, window_id: int, url: str | None) -> None:
    """The active tab of a window changed."""
    if url is not None:
        app.mirror.upsert(TabInfo(id=tab_id, window_id=window_id, url=url, active=True))
    app.emit(app.router.on_tab_activated(tab_id))


@event.command(
    "tab-updated",
    examples="""\
  dwellguard event tab-updated 12 --window 1 --url https://reddit.com/
  dwellguard event tab-updated 12 --window 1 --url https://reddit.com/ --background""",
)
@click.argument("tab_id", type=int)
@click.option("--window", "window_id", type=int, default=1, show_default=True, help="Window id.")
@click.option("--url", default=None, help="New URL (omit for non-navigation updates).")
@click.option(
    "--background",
    is_flag=True,
    help="The tab is not the active tab of its window.",
)
@click.pass_obj
def tab_updated(
    app: AppContext, tab_id: int, window_id: int, url: str | None, background: bool
) -> None:
    """A tab navigated to a new URL."""
    app.mirror.upsert(TabInfo(id=tab_id, window_id=window_id, url=url, active=not background))
    app.emit(app.router.on_tab_updated(tab_id, window_id, url))


@event.command(
    "window-focus",
    examples="""\
  dwellguard event window-focus 1 --tab 12 --url https://youtube.com/
  dwellguard event window-focus --none
  dwellguard event window-focus -- -1""",
)
@click.argument("window_id", type=int, required=False)
@click.option("--none", "unfocused", is_flag=True, help="No browser window has focus.")
@click.option("--tab", "tab_id", type=int, default=None, help="Active tab of the window.")
@click.option("--url", default=None, help="URL of the active tab.")
@click.pass_obj
def window_focus(
    app: AppContext,
    window_id: int | None,
    unfocused: bool,
    tab_id: int | None,
    url: str | None,
) -> None:
    """Focus moved to WINDOW_ID (-1 or --none: no browser window has focus)."""
    if unfocused:
        window_id = WINDOW_ID_NONE
    if window_id is None:
        raise click.UsageError("Pass a WINDOW_ID or --none.")
    if window_id != WINDOW_ID_NONE and tab_id is not None:
        app.mirror.upsert(TabInfo(id=tab_id, window_id=window_id, url=url, active=True))
    app.emit(app.router.on_window_focus_changed(window_id))


@event.command(
    "window-created",
    examples="""\
  dwellguard event window-created 7
  dwellguard event window-created 7 --incognito""",
)
@click.argument("window_id", type=int)
@click.option("--incognito", is_flag=True, help="The window is a private-browsing window.")
@click.pass_obj
def window_created(app: AppContext, window_id: int, incognito: bool) -> None:
    """A window opened; private windows are closed immediately."""
    app.emit(app.router.on_window_created(window_id, incognito=incognito))


@event.command(
    "settings-changed",
    examples="""\
  dwellguard event settings-changed --old '{"restrictedDomains": {}}' \\
      --new '{"restrictedDomains": {"youtube.com": {"dailyLimitMinutes": 30}}}'""",
)
@click.option("--old", "old_json", default=None, help="Previous settings document (JSON).")
@click.option("--new", "new_json", default=None, help="New settings document (JSON, omit to delete).")
@click.pass_obj
def settings_changed(app: AppContext, old_json: str | None, new_json: str | None) -> None:
    """Replay an external settings edit."""
    from dwellguard.services.dispatcher import EventDispatcher

    try:
        changes = {
            "settings": {
                "oldValue": json.loads(old_json) if old_json else None,
                "newValue": json.loads(new_json) if new_json else None,
            }
        }
    except json.JSONDecodeError as exc:
        raise click.BadParameter(str(exc)) from exc
    dispatcher = EventDispatcher(app.router, app.mirror)
    app.emit(
        dispatcher.handle({"event": "settings_changed", "areaName": "sync", "changes": changes})
    )


@event.command(
    "tab-removed",
    examples="  dwellguard event tab-removed 12",
)
@click.argument("tab_id", type=int)
@click.pass_obj
def tab_removed(app: AppContext, tab_id: int) -> None:
    """A tab closed (forgotten by the tab mirror)."""
    from dwellguard.services.dispatcher import EventDispatcher

    app.emit(EventDispatcher(app.router, app.mirror).handle({"event": "tab_removed", "tabId": tab_id}))
