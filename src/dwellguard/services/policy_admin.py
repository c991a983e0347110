"""PolicyAdmin: the settings collaborator behind ``dwellguard policy``.

Edits go to the synced ``settings`` document only. Enforcement follows
through the storage change stream (see ``EventRouter.attach``), exactly as
it would for an edit made on another device.
"""

from __future__ import annotations

import logging

from dwellguard.domain.classifier import normalize_domain
from dwellguard.domain.policy import SETTINGS_KEY, PolicyConfig
from dwellguard.services.base import BaseService
from dwellguard.services.contracts import PolicyShowData, dump_validated
from dwellguard.services.result import ServiceResult
from dwellguard.services.state import read_policy

logger = logging.getLogger(__name__)


class PolicyAdmin(BaseService):
    """Show, set, and remove per-domain daily limits."""

    def _load(self, warnings: list[str]) -> tuple[PolicyConfig, bool]:
        return read_policy(self._host.sync.get_one(SETTINGS_KEY), warnings)

    @staticmethod
    def _refuse_malformed(op: str, warnings: list[str]) -> ServiceResult:
        return ServiceResult.failure(
            op,
            "MALFORMED_SETTINGS",
            "Stored settings contain invalid entries; fix them before editing",
            problems=warnings,
        )

    def _save(self, policy: PolicyConfig) -> None:
        self._host.sync.set({SETTINGS_KEY: policy.to_settings()})

    def show(self) -> ServiceResult:
        warnings: list[str] = []
        policy, _ = self._load(warnings)
        return ServiceResult(
            ok=True,
            op="policy_show",
            data=dump_validated(
                PolicyShowData,
                {
                    "domains": [
                        {"domain": domain, "limit_seconds": seconds}
                        for domain, seconds in sorted(policy.limits.items())
                    ],
                    "count": len(policy.limits),
                },
            ),
            warnings=warnings,
        )

    def set_limit(self, raw_domain: str, minutes: int) -> ServiceResult:
        """Track *raw_domain* with a daily limit of *minutes*."""
        op = "policy_set"
        domain = normalize_domain(raw_domain)
        if domain is None:
            return ServiceResult.failure(
                op, "INVALID_DOMAIN", f"Not a trackable domain: {raw_domain!r}", domain=raw_domain
            )
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            return ServiceResult.failure(
                op, "INVALID_LIMIT", f"Daily limit must be a positive number of minutes: {minutes!r}"
            )

        warnings: list[str] = []
        current, intact = self._load(warnings)
        if not intact:
            return self._refuse_malformed(op, warnings)
        previous = current.limit_seconds(domain)
        self._save(current.with_limit(domain, minutes * 60))
        logger.info("Set daily limit for %s to %d minute(s)", domain, minutes)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "domain": domain,
                "limit_seconds": minutes * 60,
                "previous_limit_seconds": previous,
            },
            warnings=warnings,
        )

    def remove(self, raw_domain: str) -> ServiceResult:
        """Stop tracking *raw_domain*; its block rule is lifted by live-sync."""
        op = "policy_remove"
        domain = normalize_domain(raw_domain)
        if domain is None:
            return ServiceResult.failure(
                op, "INVALID_DOMAIN", f"Not a trackable domain: {raw_domain!r}", domain=raw_domain
            )
        warnings: list[str] = []
        current, intact = self._load(warnings)
        if not intact:
            return self._refuse_malformed(op, warnings)
        if not current.tracks(domain):
            return ServiceResult.failure(op, "NOT_FOUND", f"Domain not tracked: {domain}", domain=domain)
        self._save(current.without(domain))
        logger.info("Removed daily limit for %s", domain)
        return ServiceResult(ok=True, op=op, data={"domain": domain}, warnings=warnings)
