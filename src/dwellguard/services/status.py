"""StatusService: read-only usage-vs-limit report."""

from __future__ import annotations

from datetime import date
from typing import Any

from dwellguard.services._helpers import iso_day, iso_from_ms
from dwellguard.services.base import BaseService
from dwellguard.services.contracts import StatusResultData, dump_validated
from dwellguard.services.enforcer import RuleEnforcer
from dwellguard.services.ledger import UsageLedger
from dwellguard.services.result import ServiceResult
from dwellguard.services.state import StateHydrator
from dwellguard.services.timer import elapsed_seconds


class StatusService(BaseService):
    """Summarises a day's ledger against the current policy.

    Never writes: the pending seconds of a running timer are reported
    separately rather than flushed.
    """

    def summary(self, day: date | None = None) -> ServiceResult:
        warnings: list[str] = []
        state = StateHydrator(self._host).hydrate(warnings=warnings)
        today = state.day
        target = day or today
        usage = state.usage if target == today else UsageLedger(self._host).load(target)

        enforcer = RuleEnforcer(self._host)
        rules = {rule.id: rule for rule in self._host.rules.get_dynamic_rules()}
        domains: list[dict[str, Any]] = []
        for domain in sorted(state.policy.tracked_domains | set(usage)):
            limit = state.policy.limit_seconds(domain)
            used = usage.get(domain, 0)
            rule_id = enforcer.rule_for(domain).id
            rule = rules.get(rule_id)
            domains.append(
                {
                    "domain": domain,
                    "used_seconds": used,
                    "limit_seconds": limit,
                    "remaining_seconds": max(limit - used, 0) if limit is not None else None,
                    "tracked": limit is not None,
                    "blocked": target == today and rule is not None and rule.domain == domain,
                    "rule_id": rule_id,
                }
            )

        active: dict[str, Any] | None = None
        if state.timer is not None:
            pending = max(elapsed_seconds(state.timer.start_ms, self._host.now_ms()), 0)
            active = {
                "domain": state.timer.domain,
                "since": iso_from_ms(state.timer.start_ms),
                "pending_seconds": pending,
            }

        data = {
            "day": iso_day(target),
            "domains": domains,
            "active": active,
            "rule_ids": sorted(rules),
            "ledger_days": [iso_day(d) for d in UsageLedger(self._host).days()],
            "last_reset_day": iso_day(state.last_reset_day) if state.last_reset_day else None,
        }
        return ServiceResult(
            ok=True,
            op="status",
            data=dump_validated(StatusResultData, data),
            warnings=warnings,
        )
