"""UsageLedger: persistence write, day ledgers, and retention sweep."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from dwellguard.domain.days import USAGE_KEY_PREFIX, is_expired, parse_usage_key, usage_key
from dwellguard.services._helpers import iso_day
from dwellguard.services.base import BaseService
from dwellguard.services.state import (
    ACTIVE_DOMAIN_KEY,
    ACTIVE_START_KEY,
    LAST_RESET_KEY,
    sanitize_usage,
)
from dwellguard.services.timer import flush

if TYPE_CHECKING:
    from dwellguard.services.state import EngineState

logger = logging.getLogger(__name__)


class UsageLedger(BaseService):
    """Reads and writes per-day usage ledgers in the ``local`` area."""

    def persist(self, state: EngineState) -> int:
        """Flush the timer, then write today's ledger plus the timer snapshot.

        The snapshot lets a restarted process resume an in-progress dwell
        interval. Returns the seconds flushed.
        """
        flushed = flush(state, self._host.now_ms())
        timer = state.timer
        self._host.local.set(
            {
                state.usage_key: dict(state.usage),
                ACTIVE_DOMAIN_KEY: timer.domain if timer is not None else None,
                ACTIVE_START_KEY: timer.start_ms if timer is not None else None,
            }
        )
        return flushed

    def load(self, day: date) -> dict[str, int]:
        """Ledger for *day* (empty if none was recorded)."""
        return sanitize_usage(self._host.local.get_one(usage_key(day)))

    def days(self) -> list[date]:
        """Every day that has a parseable ledger, oldest first."""
        parsed = (parse_usage_key(k) for k in self._host.local.keys(USAGE_KEY_PREFIX))
        return sorted(d for d in parsed if d is not None)

    def sweep_retention(self, today: date | None = None) -> list[str]:
        """Delete ledgers strictly older than the retention horizon.

        Unparseable ``usage_*`` keys are left alone. Returns removed keys.
        """
        today = today or self._host.today()
        retention_days = self._host.settings.engine.retention_days
        expired: list[str] = []
        for key in self._host.local.keys(USAGE_KEY_PREFIX):
            day = parse_usage_key(key)
            if day is None:
                logger.debug("Skipping unparseable usage key %s", key)
                continue
            if is_expired(day, today, retention_days):
                expired.append(key)
        if expired:
            self._host.local.remove(expired)
            logger.debug("Retention sweep removed %d ledger(s)", len(expired))
        return expired

    def mark_reset(self, day: date) -> None:
        """Record that the rule table was fully reset on *day*."""
        self._host.local.set({LAST_RESET_KEY: iso_day(day)})
