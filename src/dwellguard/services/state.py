"""EngineState and the State Hydrator.

The hosting process may be stopped between any two events, so nothing is
kept in module globals. Every event handler starts by rebuilding an
:class:`EngineState` from durable storage and throws it away afterwards.

Hydration only reads. It never writes back, even when it discards a
stale timer; the next persistence write records the corrected snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from dwellguard.domain.days import local_day_of, usage_key
from dwellguard.domain.policy import SETTINGS_KEY, PolicyConfig
from dwellguard.services._helpers import parse_iso_day
from dwellguard.services.base import BaseService

logger = logging.getLogger(__name__)

ACTIVE_DOMAIN_KEY = "activeDomain"
ACTIVE_START_KEY = "activeStart"
LAST_RESET_KEY = "lastResetDay"


@dataclass
class ActiveTimer:
    """The single focused tracked domain and when counting (re)started."""

    domain: str
    start_ms: int


@dataclass
class EngineState:
    """Per-event context object built by :class:`StateHydrator`.

    Attributes:
        policy: Cached policy snapshot.
        day: Local calendar day the ledger belongs to.
        usage: ``{domain: seconds}`` for *day*; mutated in place by flushes.
        timer: Active dwell timer, or None when nothing tracked has focus.
        last_reset_day: Day of the last full rule reset (None if never).
        timer_discarded: A persisted timer was dropped during hydration.
        warnings: Non-fatal issues collected while handling the event.
    """

    policy: PolicyConfig
    day: date
    usage: dict[str, int] = field(default_factory=dict)
    timer: ActiveTimer | None = None
    last_reset_day: date | None = None
    timer_discarded: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def usage_key(self) -> str:
        return usage_key(self.day)

    @property
    def needs_daily_reset(self) -> bool:
        return self.last_reset_day != self.day

    @property
    def active_domain(self) -> str | None:
        return self.timer.domain if self.timer is not None else None

    def used_seconds(self, domain: str) -> int:
        return self.usage.get(domain, 0)


def read_policy(raw: Any, warnings: list[str] | None = None) -> tuple[PolicyConfig, bool]:
    """Parse the synced settings document.

    Returns ``(policy, intact)``. Entries that fail validation are dropped
    with a warning and the rest still apply; a document that is not a
    settings mapping at all yields an empty policy. ``intact`` is False in
    either case.
    """
    skipped: list[str] = []
    try:
        policy = PolicyConfig.from_settings(raw, skipped=skipped)
    except ValueError as exc:
        logger.warning("Ignoring malformed settings: %s", exc)
        if warnings is not None:
            warnings.append("Malformed settings ignored; tracking nothing")
        return PolicyConfig.empty(), False
    for key in skipped:
        logger.warning("Ignoring malformed restricted domain entry %r", key)
        if warnings is not None:
            warnings.append(f"Malformed entry for {key!r} ignored")
    return policy, not skipped


def policy_from_storage(raw: Any, warnings: list[str] | None = None) -> PolicyConfig:
    """The usable part of the synced settings document."""
    return read_policy(raw, warnings)[0]


def sanitize_usage(raw: Any) -> dict[str, int]:
    """Keep only ``str -> non-negative number`` entries, as whole seconds."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring malformed usage ledger of type %s", type(raw).__name__)
        return {}
    cleaned: dict[str, int] = {}
    for domain, seconds in raw.items():
        if not isinstance(domain, str) or isinstance(seconds, bool):
            continue
        if not isinstance(seconds, (int, float)) or seconds < 0:
            continue
        cleaned[domain] = int(seconds)
    return cleaned


def restore_timer(domain: Any, start: Any, today: date) -> tuple[ActiveTimer | None, bool]:
    """Rebuild the persisted timer snapshot.

    Returns ``(timer, discarded)``. A snapshot is discarded when it is
    malformed or when it started on a previous calendar day, so elapsed
    time never crosses midnight into the wrong ledger.
    """
    if domain is None and start is None:
        return None, False
    if not isinstance(domain, str) or not domain:
        return None, True
    if isinstance(start, bool) or not isinstance(start, (int, float)):
        return None, True
    start_ms = int(start)
    if local_day_of(start_ms) != today:
        logger.debug("Discarding timer for %s started on a previous day", domain)
        return None, True
    return ActiveTimer(domain=domain, start_ms=start_ms), False


class StateHydrator(BaseService):
    """Rebuilds :class:`EngineState` from durable storage."""

    def hydrate(self, *, warnings: list[str] | None = None) -> EngineState:
        """Load policy, today's ledger, the timer snapshot, and the reset marker.

        Cheap and idempotent; safe to call whether or not the process
        actually restarted since the last event.
        """
        collected = warnings if warnings is not None else []
        today = self._host.today()
        key = usage_key(today)

        policy = policy_from_storage(self._host.sync.get_one(SETTINGS_KEY), collected)
        local = self._host.local.get([key, ACTIVE_DOMAIN_KEY, ACTIVE_START_KEY, LAST_RESET_KEY])
        timer, discarded = restore_timer(
            local.get(ACTIVE_DOMAIN_KEY), local.get(ACTIVE_START_KEY), today
        )

        return EngineState(
            policy=policy,
            day=today,
            usage=sanitize_usage(local.get(key)),
            timer=timer,
            last_reset_day=parse_iso_day(local.get(LAST_RESET_KEY)),
            timer_discarded=discarded,
            warnings=collected,
        )
