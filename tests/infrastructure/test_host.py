"""Tests for Host wiring and the injectable clock."""

from __future__ import annotations

from datetime import date, datetime

from dwellguard.config.settings import DwellSettings
from dwellguard.domain.days import to_epoch_ms
from dwellguard.infrastructure.host import Host


class TestHost:
    def test_creates_database(self, settings: DwellSettings) -> None:
        host = Host(settings)
        try:
            assert settings.db_path.is_file()
            assert host.local.name == "local"
            assert host.sync.name == "sync"
            assert host.event_bus is None
        finally:
            host.close()

    def test_clock(self, host: Host, clock) -> None:
        assert host.today() == date(2024, 5, 1)
        assert host.now() == datetime(2024, 5, 1, 12, 0, 0)
        assert host.now_ms() == to_epoch_ms(datetime(2024, 5, 1, 12, 0, 0))
        clock.advance(minutes=1)
        assert host.now_ms() - to_epoch_ms(datetime(2024, 5, 1, 12, 0, 0)) == 60_000

    def test_init_event_bus(self, host: Host) -> None:
        host.init_event_bus()
        assert host.event_bus is not None
        assert host.event_bus.plugin_manager.is_loaded

    def test_reopen_keeps_data(self, settings: DwellSettings) -> None:
        first = Host(settings)
        first.local.set({"k": "v"})
        first.close()
        second = Host(settings)
        try:
            assert second.local.get_one("k") == "v"
        finally:
            second.close()
