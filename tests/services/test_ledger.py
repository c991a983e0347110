"""Tests for UsageLedger: persistence writes and the retention sweep."""

from __future__ import annotations

from datetime import date, datetime

from dwellguard.domain.days import to_epoch_ms
from dwellguard.infrastructure.host import Host
from dwellguard.services.ledger import UsageLedger
from dwellguard.services.state import (
    ACTIVE_DOMAIN_KEY,
    ACTIVE_START_KEY,
    LAST_RESET_KEY,
    ActiveTimer,
    StateHydrator,
)


class TestPersist:
    def test_flushes_and_writes_snapshot(self, host: Host, clock, write_policy) -> None:
        write_policy({"reddit.com": 10})
        state = StateHydrator(host).hydrate()
        start = host.now_ms()
        state.timer = ActiveTimer("reddit.com", start)
        clock.advance(seconds=90)

        assert UsageLedger(host).persist(state) == 90
        stored = host.local.get(["usage_2024_05_01", ACTIVE_DOMAIN_KEY, ACTIVE_START_KEY])
        assert stored == {
            "usage_2024_05_01": {"reddit.com": 90},
            ACTIVE_DOMAIN_KEY: "reddit.com",
            ACTIVE_START_KEY: start + 90_000,
        }

    def test_no_timer_clears_snapshot(self, host: Host) -> None:
        state = StateHydrator(host).hydrate()
        UsageLedger(host).persist(state)
        assert host.local.get_one(ACTIVE_DOMAIN_KEY) is None
        assert host.local.get_one(ACTIVE_START_KEY) is None

    def test_restart_resumes_from_snapshot(self, host: Host, clock, write_policy) -> None:
        """Usage grows by the time since the snapshot, not since install."""
        write_policy({"reddit.com": 60})
        install = to_epoch_ms(datetime(2024, 5, 1, 0, 5))
        snapshot = to_epoch_ms(datetime(2024, 5, 1, 12, 0))
        host.local.set(
            {
                "usage_2024_05_01": {"reddit.com": 300},
                ACTIVE_DOMAIN_KEY: "reddit.com",
                ACTIVE_START_KEY: snapshot,
                "installedAt": install,
            }
        )
        clock.advance(minutes=5)
        state = StateHydrator(host).hydrate()
        UsageLedger(host).persist(state)
        assert UsageLedger(host).load(date(2024, 5, 1)) == {"reddit.com": 600}


class TestRetention:
    def test_sweep_keeps_horizon(self, host: Host) -> None:
        ledger = UsageLedger(host)
        host.local.set(
            {
                "usage_2024_05_01": {},
                "usage_2024_04_24": {},
                "usage_2024_04_23": {},
                "usage_2024_01_01": {},
                "usage_garbage": {},
                "usage_2024_02_31": {},
                ACTIVE_DOMAIN_KEY: None,
            }
        )
        removed = ledger.sweep_retention(date(2024, 5, 1))
        assert sorted(removed) == ["usage_2024_01_01", "usage_2024_04_23"]
        assert host.local.keys("usage_") == [
            "usage_2024_02_31",
            "usage_2024_04_24",
            "usage_2024_05_01",
            "usage_garbage",
        ]

    def test_sweep_defaults_to_today(self, host: Host) -> None:
        host.local.set({"usage_2024_04_01": {}})
        assert UsageLedger(host).sweep_retention() == ["usage_2024_04_01"]

    def test_sweep_nothing(self, host: Host) -> None:
        assert UsageLedger(host).sweep_retention() == []

    def test_days(self, host: Host) -> None:
        host.local.set({"usage_2024_04_30": {}, "usage_2024_04_29": {}, "usage_bad": {}})
        assert UsageLedger(host).days() == [date(2024, 4, 29), date(2024, 4, 30)]


def test_mark_reset(host: Host) -> None:
    UsageLedger(host).mark_reset(date(2024, 5, 1))
    assert host.local.get_one(LAST_RESET_KEY) == "2024-05-01"
