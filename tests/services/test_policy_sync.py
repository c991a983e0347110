"""Tests for PolicySync: live-sync of external settings edits."""

from __future__ import annotations

from dwellguard.domain.ids import rule_id_for
from dwellguard.domain.policy import PolicyConfig
from dwellguard.infrastructure.host import Host
from dwellguard.services.enforcer import RuleEnforcer
from dwellguard.services.policy_sync import PolicySync
from dwellguard.services.state import StateHydrator


class TestApply:
    def test_removed_domain_is_unblocked(self, host: Host, write_policy, recorder) -> None:
        write_policy({"instagram.com": 1, "youtube.com": 30})
        host.local.set({"usage_2024_05_01": {"instagram.com": 120}})
        state = StateHydrator(host).hydrate()
        RuleEnforcer(host).reconcile(state)
        old = state.policy

        write_policy({"youtube.com": 30})
        new = PolicyConfig(limits={"youtube.com": 1800})
        data = PolicySync(host).apply(StateHydrator(host).hydrate(), new, old_policy=old)

        assert data["dropped"] == ["instagram.com"]
        assert data["unblocked"] == ["instagram.com"]
        assert host.rules.get_rule(rule_id_for("instagram.com")) is None
        # orphaned usage stays
        assert host.local.get_one("usage_2024_05_01") == {"instagram.com": 120}
        assert "post_unblock" in recorder.names()

    def test_lowered_limit_blocks_immediately(self, host: Host, write_policy) -> None:
        write_policy({"youtube.com": 30})
        host.local.set({"usage_2024_05_01": {"youtube.com": 600}})
        state = StateHydrator(host).hydrate()

        data = PolicySync(host).apply(state, PolicyConfig(limits={"youtube.com": 300}))

        assert data["blocked_rule_ids"] == [rule_id_for("youtube.com")]
        assert state.policy.limits == {"youtube.com": 300}

    def test_without_old_policy_uses_hydrated(self, host: Host, write_policy) -> None:
        write_policy({"a.com": 1})
        host.local.set({"usage_2024_05_01": {"a.com": 60}})
        state = StateHydrator(host).hydrate()
        RuleEnforcer(host).reconcile(state)

        data = PolicySync(host).apply(state, PolicyConfig.empty())

        assert data["dropped"] == ["a.com"]
        assert host.rules.get_dynamic_rules() == []

    def test_new_policy_gets_no_spurious_unblocks(self, host: Host) -> None:
        state = StateHydrator(host).hydrate()
        data = PolicySync(host).apply(
            state, PolicyConfig(limits={"a.com": 60}), old_policy=PolicyConfig.empty()
        )
        assert data == {"tracked": ["a.com"], "dropped": [], "unblocked": [], "blocked_rule_ids": []}
