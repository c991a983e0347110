"""Tests for the WAL-backed EventBus."""

from __future__ import annotations

import json

import pytest
from sqlalchemy import select
from sqlalchemy.engine import Engine

from dwellguard.infrastructure.database.schema import event_wal
from dwellguard.plugins.event_bus import EventBus
from dwellguard.plugins.hookspecs import hookimpl
from dwellguard.plugins.manager import PluginManager


class BlockListener:
    def __init__(self) -> None:
        self.blocked: list[str] = []

    @hookimpl
    def post_block(self, domain: str, rule_id: int, used_seconds: int, limit_seconds: int) -> None:
        self.blocked.append(domain)


class FlakyListener:
    def __init__(self, failures: int) -> None:
        self.failures = failures

    @hookimpl
    def post_reset(self, rule_ids: list[int], day: str) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("notifier offline")


def _rows(engine: Engine) -> list:
    with engine.connect() as conn:
        return conn.execute(select(event_wal).order_by(event_wal.c.id)).fetchall()


@pytest.fixture
def pm() -> PluginManager:
    return PluginManager()


def test_dispatch_records_and_calls(db_engine: Engine, pm: PluginManager) -> None:
    listener = BlockListener()
    pm.register_plugin(listener)
    bus = EventBus(db_engine, pm)

    event_id = bus.dispatch(
        "post_block",
        {"domain": "youtube.com", "rule_id": 1234, "used_seconds": 1800, "limit_seconds": 1800},
    )

    assert listener.blocked == ["youtube.com"]
    row = _rows(db_engine)[0]
    assert row.id == event_id
    assert row.status == "completed"
    assert json.loads(row.payload)["rule_id"] == 1234


def test_unknown_hook_completes(db_engine: Engine, pm: PluginManager) -> None:
    bus = EventBus(db_engine, pm)
    bus.dispatch("post_nothing", {})
    assert _rows(db_engine)[0].status == "completed"


def test_failure_is_recorded_not_raised(db_engine: Engine, pm: PluginManager) -> None:
    pm.register_plugin(FlakyListener(failures=1))
    bus = EventBus(db_engine, pm)

    bus.dispatch("post_reset", {"rule_ids": [1001], "day": "2024-05-01"})

    row = _rows(db_engine)[0]
    assert row.status == "failed"
    assert row.retries == 1
    assert "notifier offline" in row.error


def test_drain_retries_failed_events(db_engine: Engine, pm: PluginManager) -> None:
    pm.register_plugin(FlakyListener(failures=1))
    bus = EventBus(db_engine, pm)
    event_id = bus.dispatch("post_reset", {"rule_ids": [], "day": "2024-05-01"})

    assert bus.drain() == [{"id": event_id, "hook_name": "post_reset", "status": "completed"}]
    assert bus.drain() == []


def test_dead_letter_after_max_retries(db_engine: Engine, pm: PluginManager) -> None:
    pm.register_plugin(FlakyListener(failures=10))
    bus = EventBus(db_engine, pm, max_retries=2)
    bus.dispatch("post_reset", {"rule_ids": [], "day": "2024-05-01"})

    statuses = [entry["status"] for entry in bus.drain()]

    assert statuses == ["dead_letter"]
    assert _rows(db_engine)[0].completed is not None
    assert bus.drain() == []


def test_prune_keeps_undelivered_events(db_engine: Engine, pm: PluginManager) -> None:
    pm.register_plugin(FlakyListener(failures=10))
    bus = EventBus(db_engine, pm, max_retries=1)
    bus.dispatch(
        "post_block", {"domain": "a.com", "rule_id": 1, "used_seconds": 1, "limit_seconds": 1}
    )
    bus.dispatch("post_reset", {"rule_ids": [], "day": "2024-05-01"})
    bus.dispatch("post_window_closed", {"window_id": 3})

    assert bus.prune_completed() == 2
    assert [row.status for row in _rows(db_engine)] == ["dead_letter"]
    assert bus.prune_completed() == 0
