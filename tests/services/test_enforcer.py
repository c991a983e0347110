"""Tests for RuleEnforcer: reconciliation, removal, and reset."""

from __future__ import annotations

from datetime import date

from dwellguard.domain.ids import rule_id_for
from dwellguard.domain.rules import BlockRule
from dwellguard.infrastructure.host import Host
from dwellguard.services.enforcer import RuleEnforcer
from dwellguard.services.state import StateHydrator


def _hydrate_with_usage(host: Host, usage: dict[str, int]):
    host.local.set({"usage_2024_05_01": usage})
    return StateHydrator(host).hydrate()


class TestReconcile:
    def test_blocks_at_limit(self, host: Host, write_policy, recorder) -> None:
        write_policy({"youtube.com": 30, "reddit.com": 30})
        state = _hydrate_with_usage(host, {"youtube.com": 1800, "reddit.com": 1799})

        created = RuleEnforcer(host).reconcile(state)

        assert created == [rule_id_for("youtube.com")]
        assert [r.domain for r in host.rules.get_dynamic_rules()] == ["youtube.com"]
        assert recorder.calls == [
            (
                "post_block",
                {
                    "domain": "youtube.com",
                    "rule_id": rule_id_for("youtube.com"),
                    "used_seconds": 1800,
                    "limit_seconds": 1800,
                },
            )
        ]

    def test_idempotent(self, host: Host, write_policy, recorder) -> None:
        write_policy({"youtube.com": 1})
        state = _hydrate_with_usage(host, {"youtube.com": 100})
        enforcer = RuleEnforcer(host)
        enforcer.reconcile(state)
        assert enforcer.reconcile(state) == []
        assert recorder.names() == ["post_block"]
        assert len(host.rules.get_dynamic_rules()) == 1

    def test_untracked_usage_never_blocks(self, host: Host) -> None:
        state = _hydrate_with_usage(host, {"orphan.com": 10_000})
        assert RuleEnforcer(host).reconcile(state) == []

    def test_never_removes(self, host: Host, write_policy) -> None:
        write_policy({"youtube.com": 1})
        state = _hydrate_with_usage(host, {"youtube.com": 60})
        enforcer = RuleEnforcer(host)
        enforcer.reconcile(state)
        state.usage.clear()
        enforcer.reconcile(state)
        assert len(host.rules.get_dynamic_rules()) == 1

    def test_uses_configured_rule_shape(self, tmp_path, clock, monkeypatch) -> None:
        from dwellguard.config.settings import DwellSettings

        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DWELLGUARD_CONFIG", raising=False)
        (tmp_path / "dwellguard.toml").write_text(
            '[rules]\nid_start = 50000\nid_span = 100\npriority = 3\nresource_types = ["main_frame"]\n'
        )
        custom = Host(DwellSettings.from_cli(data_dir=tmp_path / "data"), clock=clock)
        try:
            rule = RuleEnforcer(custom).rule_for("youtube.com")
            assert 50_000 <= rule.id < 50_100
            assert rule.priority == 3
            assert rule.resource_types == ["main_frame"]
        finally:
            custom.close()


class TestRemoveAndReset:
    def test_remove_rule(self, host: Host, write_policy, recorder) -> None:
        write_policy({"youtube.com": 1})
        enforcer = RuleEnforcer(host)
        enforcer.reconcile(_hydrate_with_usage(host, {"youtube.com": 60}))

        assert enforcer.remove_rule("youtube.com")
        assert not enforcer.remove_rule("youtube.com")
        assert host.rules.get_dynamic_rules() == []
        assert recorder.calls[-1] == (
            "post_unblock",
            {
                "domain": "youtube.com",
                "rule_id": rule_id_for("youtube.com"),
                "reason": "policy_removed",
            },
        )

    def test_reset_all(self, host: Host, write_policy, recorder) -> None:
        write_policy({"youtube.com": 1, "reddit.com": 1})
        enforcer = RuleEnforcer(host)
        enforcer.reconcile(_hydrate_with_usage(host, {"youtube.com": 60, "reddit.com": 60}))

        removed = enforcer.reset_all(date(2024, 5, 1))

        assert sorted(removed) == sorted([rule_id_for("youtube.com"), rule_id_for("reddit.com")])
        assert host.rules.get_dynamic_rules() == []
        assert recorder.calls[-1] == ("post_reset", {"rule_ids": removed, "day": "2024-05-01"})

    def test_reset_keeps_rules_outside_range(self, host: Host, write_policy) -> None:
        write_policy({"youtube.com": 1})
        static = BlockRule(id=7, domain="ads.example", url_filter="||ads.example")
        host.rules.update_dynamic_rules(add_rules=[static])
        enforcer = RuleEnforcer(host)
        enforcer.reconcile(_hydrate_with_usage(host, {"youtube.com": 60}))

        removed = enforcer.reset_all(date(2024, 5, 1))

        assert removed == [rule_id_for("youtube.com")]
        assert host.rules.get_dynamic_rules() == [static]

    def test_reset_empty_table(self, host: Host) -> None:
        assert RuleEnforcer(host).reset_all(date(2024, 5, 1)) == []
