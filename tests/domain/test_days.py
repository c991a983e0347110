"""Tests for usage keys and the retention horizon."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from dwellguard.domain.days import (
    is_expired,
    local_day_of,
    parse_usage_key,
    retention_cutoff,
    to_epoch_ms,
    usage_key,
)


class TestUsageKey:
    def test_format(self) -> None:
        assert usage_key(date(2024, 3, 9)) == "usage_2024_03_09"

    def test_parse(self) -> None:
        assert parse_usage_key("usage_2024_03_09") == date(2024, 3, 9)

    @pytest.mark.parametrize(
        "key",
        [
            "usage_2024_3_9",
            "usage_2024_13_01",
            "usage_2024_02_30",
            "usage_2024_03",
            "usage_2024_03_09_extra",
            "usage-2024-03-09",
            "activeDomain",
            "usage_",
        ],
    )
    def test_parse_rejects_malformed(self, key: str) -> None:
        assert parse_usage_key(key) is None

    def test_parse_inverts_format(self) -> None:
        day = date(2023, 12, 31)
        assert parse_usage_key(usage_key(day)) == day


class TestRetention:
    def test_cutoff(self) -> None:
        assert retention_cutoff(date(2024, 5, 10), 7) == date(2024, 5, 3)

    def test_horizon_day_is_kept(self) -> None:
        assert not is_expired(date(2024, 5, 3), date(2024, 5, 10), 7)

    def test_older_than_horizon_expires(self) -> None:
        assert is_expired(date(2024, 5, 2), date(2024, 5, 10), 7)

    def test_today_never_expires(self) -> None:
        assert not is_expired(date(2024, 5, 10), date(2024, 5, 10), 0)


def test_epoch_ms_round_trips_local_day() -> None:
    moment = datetime(2024, 5, 1, 23, 59, 30)
    assert local_day_of(to_epoch_ms(moment)) == date(2024, 5, 1)
