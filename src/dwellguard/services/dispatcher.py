"""EventDispatcher: JSON-lines platform messages into the router.

Used by ``dwellguard listen``. Decoded messages go onto a queue drained by
a single worker thread; a ticker thread enqueues the persistence alarm
every ``engine.tick_interval_minutes``. EOF on the input stops both.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from dwellguard.domain.policy import SETTINGS_KEY
from dwellguard.domain.types import EventKind, StorageAreaName
from dwellguard.infrastructure.browser import TabInfo, TabMirror
from dwellguard.infrastructure.storage import StorageChange
from dwellguard.services.result import ServiceResult

if TYPE_CHECKING:
    from dwellguard.services.router import EventRouter

logger = logging.getLogger(__name__)

ResultSink = Callable[[ServiceResult], None]

_STOP = object()


class MessageError(ValueError):
    """A platform message could not be decoded."""


def _require_int(message: dict[str, Any], key: str) -> int:
    value = message.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MessageError(f"'{key}' must be an integer")
    return value


def _tab_from(raw: Any) -> TabInfo:
    if not isinstance(raw, dict):
        raise MessageError("'tab' must be an object")
    url = raw.get("url")
    return TabInfo(
        id=_require_int(raw, "id"),
        window_id=_require_int(raw, "windowId"),
        url=url if isinstance(url, str) else None,
        active=bool(raw.get("active", False)),
    )


def _changes_from(raw: Any) -> dict[str, StorageChange]:
    if not isinstance(raw, dict):
        raise MessageError("'changes' must be an object")
    changes: dict[str, StorageChange] = {}
    for key, change in raw.items():
        if not isinstance(change, dict):
            raise MessageError(f"change for '{key}' must be an object")
        changes[key] = StorageChange(
            old_value=change.get("oldValue"),
            new_value=change.get("newValue"),
        )
    return changes


class EventDispatcher:
    """Decodes platform messages and feeds them to an :class:`EventRouter`.

    Args:
        router: The router handling decoded events.
        mirror: Tab table seeded from messages carrying tab details.
        on_result: Receives every handler result (the CLI prints them).
        tick_seconds: Alarm period; ``None`` or ``0`` disables the ticker.
    """

    def __init__(
        self,
        router: EventRouter,
        mirror: TabMirror,
        *,
        on_result: ResultSink | None = None,
        tick_seconds: float | None = None,
    ) -> None:
        self._router = router
        self._mirror = mirror
        self._on_result = on_result
        self._tick_seconds = tick_seconds
        self._queue: queue.Queue[Any] = queue.Queue()
        self._stop_event = threading.Event()
        self._handlers: dict[str, Callable[[dict[str, Any]], ServiceResult]] = {
            EventKind.INSTALLED: lambda m: self._router.on_installed(),
            EventKind.STARTUP: lambda m: self._router.on_startup(),
            EventKind.TAB_ACTIVATED: self._tab_activated,
            EventKind.TAB_UPDATED: self._tab_updated,
            EventKind.TAB_REMOVED: self._tab_removed,
            EventKind.WINDOW_FOCUS_CHANGED: self._window_focus_changed,
            EventKind.WINDOW_CREATED: self._window_created,
            EventKind.SETTINGS_CHANGED: self._settings_changed,
            EventKind.ALARM: self._alarm,
        }

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def handle_line(self, line: str) -> ServiceResult | None:
        """Decode and handle one JSON line. Blank lines return None."""
        line = line.strip()
        if not line:
            return None
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Undecodable platform message: %s", exc)
            return ServiceResult.failure("message", "BAD_MESSAGE", f"Invalid JSON: {exc}")
        if not isinstance(message, dict):
            return ServiceResult.failure("message", "BAD_MESSAGE", "Message must be an object")
        return self.handle(message)

    def handle(self, message: dict[str, Any]) -> ServiceResult:
        """Route one decoded message."""
        event = message.get("event")
        handler = self._handlers.get(event) if isinstance(event, str) else None
        if handler is None:
            logger.warning("Unknown platform event %r", event)
            return ServiceResult.failure(
                "message", "UNKNOWN_EVENT", f"Unknown event: {event!r}", event=event
            )
        try:
            return handler(message)
        except MessageError as exc:
            logger.warning("Malformed %s message: %s", event, exc)
            return ServiceResult.failure(event, "BAD_MESSAGE", str(exc))

    def _tab_activated(self, message: dict[str, Any]) -> ServiceResult:
        """Seed the mirror from an optional ``tab`` object or ``url``.

        A tab the mirror has never seen and the message does not describe
        is recorded with no URL, so focus moves to an untracked page
        instead of leaving the previous domain's timer running.
        """
        tab_id = _require_int(message, "tabId")
        window_id = _require_int(message, "windowId")
        if message.get("tab") is not None:
            tab = _tab_from(message["tab"])
            self._mirror.upsert(TabInfo(id=tab_id, window_id=window_id, url=tab.url, active=True))
        elif "url" in message or not self._mirror.knows(tab_id):
            url = message.get("url")
            if url is not None and not isinstance(url, str):
                raise MessageError("'url' must be a string")
            self._mirror.upsert(TabInfo(id=tab_id, window_id=window_id, url=url, active=True))
        else:
            self._mirror.activate(tab_id, window_id)
        return self._router.on_tab_activated(tab_id)

    def _tab_updated(self, message: dict[str, Any]) -> ServiceResult:
        tab_id = _require_int(message, "tabId")
        tab = _tab_from(message.get("tab"))
        self._mirror.upsert(tab)
        change_info = message.get("changeInfo") or {}
        if not isinstance(change_info, dict):
            raise MessageError("'changeInfo' must be an object")
        url = change_info.get("url")
        return self._router.on_tab_updated(
            tab_id, tab.window_id, url if isinstance(url, str) else None
        )

    def _tab_removed(self, message: dict[str, Any]) -> ServiceResult:
        tab_id = _require_int(message, "tabId")
        self._mirror.remove(tab_id)
        return ServiceResult(ok=True, op=EventKind.TAB_REMOVED, data={"tab_id": tab_id})

    def _window_focus_changed(self, message: dict[str, Any]) -> ServiceResult:
        return self._router.on_window_focus_changed(_require_int(message, "windowId"))

    def _window_created(self, message: dict[str, Any]) -> ServiceResult:
        window = message.get("window")
        if not isinstance(window, dict):
            raise MessageError("'window' must be an object")
        return self._router.on_window_created(
            _require_int(window, "id"), incognito=bool(window.get("incognito", False))
        )

    def _settings_changed(self, message: dict[str, Any]) -> ServiceResult:
        area = message.get("areaName")
        if not isinstance(area, str):
            raise MessageError("'areaName' must be a string")
        changes = _changes_from(message.get("changes"))
        self._mirror_settings(area, changes)
        return self._router.on_settings_changed(changes, area)

    def _mirror_settings(self, area: str, changes: dict[str, StorageChange]) -> None:
        """Write the platform's new settings value into local durable storage."""
        change = changes.get(SETTINGS_KEY)
        if area != StorageAreaName.SYNC or change is None:
            return
        sync = self._router.host.sync
        if change.new_value is None:
            sync.remove(SETTINGS_KEY, notify=False)
        else:
            sync.set({SETTINGS_KEY: change.new_value}, notify=False)

    def _alarm(self, message: dict[str, Any]) -> ServiceResult:
        name = message.get("name")
        if not isinstance(name, str):
            raise MessageError("'name' must be a string")
        return self._router.on_alarm(name)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def submit(self, line: str) -> None:
        self._queue.put(line)

    def stop(self) -> None:
        self._stop_event.set()
        self._queue.put(_STOP)

    def run(self, lines: Iterable[str]) -> int:
        """Feed *lines* through the worker until EOF. Returns messages handled."""
        handled = 0

        def worker() -> None:
            nonlocal handled
            while True:
                item = self._queue.get()
                try:
                    if item is _STOP:
                        return
                    if isinstance(item, dict):
                        result = self.handle(item)
                    else:
                        result = self.handle_line(item)
                    if result is not None:
                        handled += 1
                        self._emit(result)
                finally:
                    self._queue.task_done()

        worker_thread = threading.Thread(target=worker, name="dwellguard-worker", daemon=True)
        worker_thread.start()
        ticker_thread = None
        if self._tick_seconds:
            ticker_thread = threading.Thread(target=self._tick_loop, name="dwellguard-ticker", daemon=True)
            ticker_thread.start()

        for line in lines:
            if self._stop_event.is_set():
                break
            self.submit(line)

        self.stop()
        worker_thread.join()
        if ticker_thread is not None:
            ticker_thread.join()
        return handled

    def _tick_loop(self) -> None:
        alarm = {"event": EventKind.ALARM, "name": self._router.host.settings.engine.alarm_name}
        while not self._stop_event.wait(self._tick_seconds):
            self._queue.put(dict(alarm))

    def _emit(self, result: ServiceResult) -> None:
        if self._on_result is not None:
            self._on_result(result)
