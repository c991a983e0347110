"""TrackingService: focus switches and the persistence tick.

``set_active_domain`` is one conceptual unit from the caller's side:
flush and switch the timer, persist, reconcile. The storage writes
underneath are not transactional; a concurrent handler may interleave,
and the next hydration self-corrects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dwellguard.services.base import BaseService
from dwellguard.services.enforcer import RuleEnforcer
from dwellguard.services.ledger import UsageLedger
from dwellguard.services.timer import switch

if TYPE_CHECKING:
    from dwellguard.services.state import EngineState


class TrackingService(BaseService):
    """Drives the dwell timer, ledger, and enforcer for one event."""

    def set_active_domain(self, state: EngineState, domain: str | None) -> dict[str, Any]:
        """Make *domain* the focused domain (None: nothing tracked has focus)."""
        previous = state.active_domain
        flushed = switch(state, domain, self._host.now_ms())
        persisted = UsageLedger(self._host).persist(state)
        blocked = RuleEnforcer(self._host).reconcile(state)
        return {
            "domain": domain,
            "previous": previous,
            "tracking": state.active_domain,
            "flushed_seconds": flushed + persisted,
            "blocked_rule_ids": blocked,
        }

    def tick(self, state: EngineState) -> dict[str, Any]:
        """Periodic persistence: flush, write, reconcile."""
        flushed = UsageLedger(self._host).persist(state)
        blocked = RuleEnforcer(self._host).reconcile(state)
        return {
            "tracking": state.active_domain,
            "flushed_seconds": flushed,
            "blocked_rule_ids": blocked,
        }
