"""RuleEnforcer: turns "usage ≥ limit" into dynamic block rules.

Rule existence is derived state: it is recomputed from policy × ledger on
every pass and never read back as ground truth, except by
:meth:`RuleEnforcer.reset_all`, which enumerates the table to clear it.

INVARIANT: reconcile() only ever adds. A domain leaves the blocked set
through remove_rule() (policy edit) or reset_all() (new day), never
because its usage looks lower mid-day.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from dwellguard.domain.ids import owns_rule_id
from dwellguard.domain.rules import BlockRule
from dwellguard.services._helpers import iso_day
from dwellguard.services.base import BaseService

if TYPE_CHECKING:
    from datetime import date

    from dwellguard.services.state import EngineState

log = structlog.get_logger(__name__)


class RuleEnforcer(BaseService):
    """Maintains one block rule per over-limit domain."""

    def rule_for(self, domain: str) -> BlockRule:
        cfg = self._host.settings.rules
        return BlockRule.for_domain(
            domain,
            id_start=cfg.id_start,
            id_span=cfg.id_span,
            priority=cfg.priority,
            resource_types=cfg.resource_types,
        )

    def reconcile(self, state: EngineState) -> list[int]:
        """Ensure every tracked domain at or over its limit has a block rule.

        Each rule is written remove-then-add by its deterministic id, so
        repeated passes never duplicate rules and never need to query the
        table. Returns ids of rules that did not exist before this pass.
        """
        created: list[int] = []
        for domain in sorted(state.policy.tracked_domains):
            limit = state.policy.limit_seconds(domain)
            used = state.used_seconds(domain)
            if limit is None or used < limit:
                continue
            rule = self.rule_for(domain)
            update = self._host.rules.update_dynamic_rules(
                remove_rule_ids=[rule.id], add_rules=[rule]
            )
            if rule.id not in update.added_ids and rule.id not in update.replaced_ids:
                continue
            created.append(rule.id)
            log.info(
                "domain.blocked",
                domain=domain,
                rule_id=rule.id,
                used_seconds=used,
                limit_seconds=limit,
            )
            self._dispatch_event(
                "post_block",
                {
                    "domain": domain,
                    "rule_id": rule.id,
                    "used_seconds": used,
                    "limit_seconds": limit,
                },
                state.warnings,
            )
        return created

    def remove_rule(
        self,
        domain: str,
        *,
        reason: str = "policy_removed",
        warnings: list[str] | None = None,
    ) -> bool:
        """Drop the block rule for *domain*. Returns True if one existed."""
        rule_id = self.rule_for(domain).id
        update = self._host.rules.update_dynamic_rules(remove_rule_ids=[rule_id])
        if not update.removed_ids:
            return False
        log.info("domain.unblocked", domain=domain, rule_id=rule_id, reason=reason)
        self._dispatch_event(
            "post_unblock",
            {"domain": domain, "rule_id": rule_id, "reason": reason},
            warnings if warnings is not None else [],
        )
        return True

    def reset_all(self, day: date, *, warnings: list[str] | None = None) -> list[int]:
        """Remove every rule in the engine's id range. Returns the removed ids.

        Rules below ``rules.id_start`` belong to someone else and survive.
        """
        cfg = self._host.settings.rules
        rule_ids = [
            rule.id
            for rule in self._host.rules.get_dynamic_rules()
            if owns_rule_id(rule.id, id_start=cfg.id_start, id_span=cfg.id_span)
        ]
        if rule_ids:
            self._host.rules.update_dynamic_rules(remove_rule_ids=rule_ids)
        log.info("rules.reset", day=iso_day(day), removed=len(rule_ids))
        self._dispatch_event(
            "post_reset",
            {"rule_ids": rule_ids, "day": iso_day(day)},
            warnings if warnings is not None else [],
        )
        return rule_ids
