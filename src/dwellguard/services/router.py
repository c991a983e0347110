"""EventRouter: the platform-facing sequencing contract.

Every handler:

1. takes the router mutex (handlers never interleave inside one process),
2. rehydrates :class:`EngineState` from storage,
3. runs the daily reset when the calendar day moved since the last one,
4. resolves the relevant domain and drives tracking/enforcement,
5. returns a :class:`ServiceResult`.

Transient platform failures (storage errors, a tab closing mid-lookup)
abandon the event: they are logged and reported in the result, never
retried. The next event rehydrates and self-corrects.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from dwellguard.config.logging import event_context
from dwellguard.domain.classifier import classify
from dwellguard.domain.policy import SETTINGS_KEY
from dwellguard.domain.types import WINDOW_ID_NONE, EventKind, StorageAreaName
from dwellguard.infrastructure.browser import BrowserError, TabMirror
from dwellguard.services._helpers import iso_day
from dwellguard.services.base import BaseService
from dwellguard.services.enforcer import RuleEnforcer
from dwellguard.services.ledger import UsageLedger
from dwellguard.services.policy_sync import PolicySync
from dwellguard.services.result import ServiceResult
from dwellguard.services.state import EngineState, StateHydrator, policy_from_storage
from dwellguard.services.tracker import TrackingService

if TYPE_CHECKING:
    from dwellguard.infrastructure.browser import BrowserGateway
    from dwellguard.infrastructure.host import Host
    from dwellguard.infrastructure.storage import StorageChange

logger = logging.getLogger(__name__)


@dataclass
class _EventScope:
    """Mutable scratch space for one handler invocation."""

    warnings: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class EventRouter(BaseService):
    """Receives platform notifications and sequences the engine for each."""

    def __init__(self, host: Host, browser: BrowserGateway | None = None) -> None:
        super().__init__(host)
        self._browser: BrowserGateway = browser if browser is not None else TabMirror()
        self._lock = threading.RLock()
        self._attached = False

    @property
    def host(self) -> Host:
        return self._host

    @property
    def browser(self) -> BrowserGateway:
        return self._browser

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def attach(self) -> None:
        """Subscribe to the synced area's change stream (idempotent)."""
        if not self._attached:
            self._host.sync.add_listener(self._on_storage_change)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self._host.sync.remove_listener(self._on_storage_change)
            self._attached = False

    def _on_storage_change(self, changes: dict[str, StorageChange], area_name: str) -> None:
        result = self.on_settings_changed(changes, area_name)
        if not result.ok:
            logger.warning("Live policy sync failed: %s", result.error)

    def _run(self, op: str, body: Callable[[_EventScope], dict[str, Any] | None]) -> ServiceResult:
        scope = _EventScope()
        with self._lock, event_context(op):
            try:
                extra = body(scope)
            except (SQLAlchemyError, BrowserError) as exc:
                logger.warning("Event %s abandoned: %s", op, exc)
                return ServiceResult.failure(
                    op,
                    "EVENT_ABANDONED",
                    str(exc),
                    exception=type(exc).__name__,
                )
        if extra:
            scope.data.update(extra)
        return ServiceResult(ok=True, op=op, data=scope.data, warnings=scope.warnings)

    def _begin(self, scope: _EventScope) -> EngineState:
        """Rehydrate, then clear yesterday's blocks if the day rolled over."""
        state = StateHydrator(self._host).hydrate(warnings=scope.warnings)
        if state.timer_discarded:
            scope.data["timer_discarded"] = True
        if state.needs_daily_reset:
            scope.data["daily_reset"] = self._daily_reset(state)
        return state

    def _daily_reset(self, state: EngineState) -> dict[str, Any]:
        ledger = UsageLedger(self._host)
        enforcer = RuleEnforcer(self._host)
        swept = ledger.sweep_retention(state.day)
        cleared = enforcer.reset_all(state.day, warnings=state.warnings)
        ledger.mark_reset(state.day)
        state.last_reset_day = state.day
        blocked = enforcer.reconcile(state)
        logger.debug("Daily reset for %s cleared %d rule(s)", state.day, len(cleared))
        return {
            "day": iso_day(state.day),
            "swept_keys": swept,
            "cleared_rule_ids": cleared,
            "blocked_rule_ids": blocked,
            "events": self._drain_events(state.warnings),
        }

    def _switch_to_url(self, state: EngineState, url: str | None) -> dict[str, Any]:
        return TrackingService(self._host).set_active_domain(state, classify(url))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_installed(self) -> ServiceResult:
        """First run or upgrade: full initialization."""
        return self._run(EventKind.INSTALLED, self._initialize)

    def on_startup(self) -> ServiceResult:
        """Browser (or host process) start: full initialization."""
        return self._run(EventKind.STARTUP, self._initialize)

    def reset(self) -> ServiceResult:
        """Manual full reset: clear every rule, then reconcile today's ledger."""
        return self._run("reset", self._initialize)

    def _initialize(self, scope: _EventScope) -> dict[str, Any]:
        state = StateHydrator(self._host).hydrate(warnings=scope.warnings)
        ledger = UsageLedger(self._host)
        enforcer = RuleEnforcer(self._host)
        swept = ledger.sweep_retention(state.day)
        cleared = enforcer.reset_all(state.day, warnings=state.warnings)
        ledger.mark_reset(state.day)
        blocked = enforcer.reconcile(state)
        engine_cfg = self._host.settings.engine
        return {
            "day": iso_day(state.day),
            "swept_keys": swept,
            "cleared_rule_ids": cleared,
            "blocked_rule_ids": blocked,
            "events": self._drain_events(scope.warnings),
            "alarm": {
                "name": engine_cfg.alarm_name,
                "period_minutes": engine_cfg.tick_interval_minutes,
            },
        }

    # ------------------------------------------------------------------
    # Focus resolution
    # ------------------------------------------------------------------

    def on_tab_activated(self, tab_id: int) -> ServiceResult:
        """The active tab of some window changed."""

        def body(scope: _EventScope) -> dict[str, Any]:
            state = self._begin(scope)
            tab = self._browser.get_tab(tab_id)
            return self._switch_to_url(state, tab.url)

        return self._run(EventKind.TAB_ACTIVATED, body)

    def on_tab_updated(self, tab_id: int, window_id: int, url: str | None) -> ServiceResult:
        """A tab navigated; only the active tab of its window matters."""

        def body(scope: _EventScope) -> dict[str, Any]:
            if url is None:
                return {"skipped": "no_url_change"}
            state = self._begin(scope)
            active = self._browser.active_tab(window_id)
            if active is None or active.id != tab_id:
                return {"skipped": "inactive_tab"}
            return self._switch_to_url(state, url)

        return self._run(EventKind.TAB_UPDATED, body)

    def on_window_focus_changed(self, window_id: int) -> ServiceResult:
        """Focus moved to *window_id*, or away from every window."""

        def body(scope: _EventScope) -> dict[str, Any]:
            state = self._begin(scope)
            if window_id == WINDOW_ID_NONE:
                return TrackingService(self._host).set_active_domain(state, None)
            active = self._browser.active_tab(window_id)
            if active is None:
                return {"skipped": "no_active_tab"}
            return self._switch_to_url(state, active.url)

        return self._run(EventKind.WINDOW_FOCUS_CHANGED, body)

    def on_window_created(self, window_id: int, *, incognito: bool) -> ServiceResult:
        """Close private-browsing windows; they are neither tracked nor exempt."""

        def body(scope: _EventScope) -> dict[str, Any]:
            if not incognito:
                return {"window_id": window_id, "closed": False}
            logger.info("Private window %s detected; closing", window_id)
            self._browser.close_window(window_id)
            self._dispatch_event("post_window_closed", {"window_id": window_id}, scope.warnings)
            return {"window_id": window_id, "closed": True}

        return self._run(EventKind.WINDOW_CREATED, body)

    # ------------------------------------------------------------------
    # Settings, alarms
    # ------------------------------------------------------------------

    def on_settings_changed(
        self,
        changes: Mapping[str, StorageChange],
        area_name: str,
    ) -> ServiceResult:
        """Live-sync an external edit of the synced ``settings`` document."""

        def body(scope: _EventScope) -> dict[str, Any]:
            change = changes.get(SETTINGS_KEY)
            if area_name != StorageAreaName.SYNC or change is None:
                return {"skipped": "not_settings"}
            state = self._begin(scope)
            old_policy = (
                policy_from_storage(change.old_value, scope.warnings)
                if change.old_value is not None
                else None
            )
            new_policy = policy_from_storage(change.new_value, scope.warnings)
            return PolicySync(self._host).apply(state, new_policy, old_policy=old_policy)

        return self._run(EventKind.SETTINGS_CHANGED, body)

    def on_alarm(self, name: str) -> ServiceResult:
        """Recurring persistence tick; foreign alarm names are ignored."""

        def body(scope: _EventScope) -> dict[str, Any]:
            if name != self._host.settings.engine.alarm_name:
                return {"skipped": "unknown_alarm", "name": name}
            state = self._begin(scope)
            return TrackingService(self._host).tick(state)

        return self._run(EventKind.ALARM, body)
