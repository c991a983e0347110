"""Browser boundary: tab/window lookups and window closing.

The engine only needs three things from the browser: look up a tab,
find the active tab of a window, and close a window. :class:`TabMirror`
answers from an in-memory copy of the tabs the platform has reported,
so a lookup can race a tab closing just like the real API does.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol

logger = logging.getLogger(__name__)


class BrowserError(Exception):
    """Transient failure talking to the browser."""


class TabNotFoundError(BrowserError):
    """The tab is gone (closed between the event and the lookup)."""

    def __init__(self, tab_id: int) -> None:
        super().__init__(f"No tab with id {tab_id}")
        self.tab_id = tab_id


@dataclass(frozen=True)
class TabInfo:
    """Snapshot of one browser tab."""

    id: int
    window_id: int
    url: str | None = None
    active: bool = False


class BrowserGateway(Protocol):
    """What the event router needs from the browser."""

    def get_tab(self, tab_id: int) -> TabInfo: ...

    def active_tab(self, window_id: int) -> TabInfo | None: ...

    def close_window(self, window_id: int) -> None: ...


class TabMirror:
    """In-memory tab table maintained from platform messages.

    Args:
        on_close_window: Called with the window id when the engine closes a
            window (the CLI forwards it to the platform as a command).
    """

    def __init__(self, on_close_window: Callable[[int], None] | None = None) -> None:
        self._tabs: dict[int, TabInfo] = {}
        self._on_close_window = on_close_window

    def upsert(self, tab: TabInfo) -> None:
        """Record *tab*; an active tab deactivates its window siblings."""
        if tab.active:
            self._deactivate_window(tab.window_id, except_tab=tab.id)
        self._tabs[tab.id] = tab

    def activate(self, tab_id: int, window_id: int) -> None:
        """Mark *tab_id* active in *window_id* (unknown tabs are ignored)."""
        self._deactivate_window(window_id, except_tab=tab_id)
        tab = self._tabs.get(tab_id)
        if tab is not None:
            self._tabs[tab_id] = replace(tab, window_id=window_id, active=True)

    def remove(self, tab_id: int) -> None:
        self._tabs.pop(tab_id, None)

    def knows(self, tab_id: int) -> bool:
        return tab_id in self._tabs

    def tabs(self) -> list[TabInfo]:
        return sorted(self._tabs.values(), key=lambda t: t.id)

    # -- BrowserGateway -------------------------------------------------

    def get_tab(self, tab_id: int) -> TabInfo:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise TabNotFoundError(tab_id)
        return tab

    def active_tab(self, window_id: int) -> TabInfo | None:
        for tab in self._tabs.values():
            if tab.window_id == window_id and tab.active:
                return tab
        return None

    def close_window(self, window_id: int) -> None:
        for tab_id in [t.id for t in self._tabs.values() if t.window_id == window_id]:
            del self._tabs[tab_id]
        if self._on_close_window is not None:
            self._on_close_window(window_id)
        logger.debug("Closed window %s", window_id)

    def _deactivate_window(self, window_id: int, *, except_tab: int) -> None:
        for tab_id, tab in list(self._tabs.items()):
            if tab.window_id == window_id and tab.active and tab_id != except_tab:
                self._tabs[tab_id] = replace(tab, active=False)
