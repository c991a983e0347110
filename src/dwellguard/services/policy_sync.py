"""Policy live-sync: apply an external settings edit to enforcement.

A domain dropped from the policy must not stay blocked, and a domain
whose usage already meets a newly lowered limit is blocked immediately
rather than on the next navigation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dwellguard.services.base import BaseService
from dwellguard.services.enforcer import RuleEnforcer

if TYPE_CHECKING:
    from dwellguard.domain.policy import PolicyConfig
    from dwellguard.services.state import EngineState

logger = logging.getLogger(__name__)


class PolicySync(BaseService):
    """Replaces the cached policy and reconciles rules against it."""

    def apply(
        self,
        state: EngineState,
        new_policy: PolicyConfig,
        *,
        old_policy: PolicyConfig | None = None,
    ) -> dict[str, Any]:
        """Swap in *new_policy*, unblock removed domains, then reconcile.

        *old_policy* is the value before the edit. When omitted, the
        hydrated ``state.policy`` stands in for it.

        Orphaned ledger entries of removed domains are kept.
        """
        previous = old_policy if old_policy is not None else state.policy
        state.policy = new_policy

        enforcer = RuleEnforcer(self._host)
        dropped = sorted(previous.tracked_domains - new_policy.tracked_domains)
        unblocked = [
            domain
            for domain in dropped
            if enforcer.remove_rule(domain, reason="policy_removed", warnings=state.warnings)
        ]
        blocked = enforcer.reconcile(state)

        logger.debug(
            "Policy synced: %d tracked, %d dropped, %d newly blocked",
            len(new_policy.tracked_domains),
            len(dropped),
            len(blocked),
        )
        return {
            "tracked": sorted(new_policy.tracked_domains),
            "dropped": dropped,
            "unblocked": unblocked,
            "blocked_rule_ids": blocked,
        }
