"""Shared pytest fixtures and test helpers for dwellguard tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pluggy
import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from dwellguard.config.settings import DwellSettings
from dwellguard.domain.policy import SETTINGS_KEY
from dwellguard.infrastructure.browser import TabInfo, TabMirror
from dwellguard.infrastructure.database.engine import init_database
from dwellguard.infrastructure.host import Host
from dwellguard.plugins.event_bus import EventBus
from dwellguard.plugins.manager import PluginManager
from dwellguard.services.router import EventRouter

hookimpl = pluggy.HookimplMarker("dwellguard")

START = datetime(2024, 5, 1, 12, 0, 0)


class FakeClock:
    """Controllable naive-local clock for Host(clock=...)."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, *, minutes: float = 0) -> datetime:
        self.now += timedelta(seconds=seconds, minutes=minutes)
        return self.now

    def set(self, moment: datetime) -> None:
        self.now = moment


class RecordingPlugin:
    """Plugin that records every enforcement hook call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    @hookimpl
    def post_block(self, domain: str, rule_id: int, used_seconds: int, limit_seconds: int) -> None:
        self.calls.append(
            (
                "post_block",
                {
                    "domain": domain,
                    "rule_id": rule_id,
                    "used_seconds": used_seconds,
                    "limit_seconds": limit_seconds,
                },
            )
        )

    @hookimpl
    def post_unblock(self, domain: str, rule_id: int, reason: str) -> None:
        self.calls.append(("post_unblock", {"domain": domain, "rule_id": rule_id, "reason": reason}))

    @hookimpl
    def post_reset(self, rule_ids: list[int], day: str) -> None:
        self.calls.append(("post_reset", {"rule_ids": rule_ids, "day": day}))

    @hookimpl
    def post_window_closed(self, window_id: int) -> None:
        self.calls.append(("post_window_closed", {"window_id": window_id}))


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> DwellSettings:
    """Settings isolated from any dwellguard.toml or DWELLGUARD_* env var."""
    monkeypatch.delenv("DWELLGUARD_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return DwellSettings.from_cli(data_dir=tmp_path / "data")


@pytest.fixture
def host(settings: DwellSettings, clock: FakeClock) -> Iterator[Host]:
    """Host on a temp database driven by the fake clock."""
    h = Host(settings, clock=clock)
    try:
        yield h
    finally:
        h.close()


@pytest.fixture
def recorder(host: Host) -> RecordingPlugin:
    """Recording plugin wired into the host's event bus."""
    plugin = RecordingPlugin()
    pm = PluginManager()
    pm.register_plugin(plugin, name="recorder")
    host._event_bus = EventBus(host.engine, pm)
    return plugin


@pytest.fixture
def mirror() -> TabMirror:
    return TabMirror()


@pytest.fixture
def router(host: Host, mirror: TabMirror) -> EventRouter:
    return EventRouter(host, mirror)


@pytest.fixture
def _isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the CLI at a temp data dir with no config discovery.

    Use via ``@pytest.mark.usefixtures("_isolated_data_dir")`` on command test
    classes.
    """
    monkeypatch.delenv("DWELLGUARD_CONFIG", raising=False)
    monkeypatch.setenv("DWELLGUARD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def write_policy(host: Host):
    """Write the synced settings document: ``write_policy({"youtube.com": 30})``."""

    def _write(limits: dict[str, int]) -> None:
        host.sync.set(
            {
                SETTINGS_KEY: {
                    "restrictedDomains": {
                        domain: {"dailyLimitMinutes": minutes} for domain, minutes in limits.items()
                    }
                }
            }
        )

    return _write


@pytest.fixture
def open_tab(mirror: TabMirror):
    """Seed the tab mirror with an active tab: ``open_tab(1, "https://...")``."""

    def _open(tab_id: int, url: str | None, *, window_id: int = 1, active: bool = True) -> TabInfo:
        tab = TabInfo(id=tab_id, window_id=window_id, url=url, active=active)
        mirror.upsert(tab)
        return tab

    return _open
