"""Tests for the in-memory TabMirror browser gateway."""

from __future__ import annotations

import pytest

from dwellguard.infrastructure.browser import TabInfo, TabMirror, TabNotFoundError


class TestTabMirror:
    def test_get_tab(self) -> None:
        mirror = TabMirror()
        mirror.upsert(TabInfo(id=1, window_id=1, url="https://a.com"))
        assert mirror.get_tab(1).url == "https://a.com"

    def test_missing_tab_raises(self) -> None:
        with pytest.raises(TabNotFoundError) as exc_info:
            TabMirror().get_tab(9)
        assert exc_info.value.tab_id == 9

    def test_single_active_tab_per_window(self) -> None:
        mirror = TabMirror()
        mirror.upsert(TabInfo(id=1, window_id=1, url="https://a.com", active=True))
        mirror.upsert(TabInfo(id=2, window_id=1, url="https://b.com", active=True))
        mirror.upsert(TabInfo(id=3, window_id=2, url="https://c.com", active=True))
        assert mirror.active_tab(1).id == 2
        assert mirror.get_tab(1).active is False
        assert mirror.active_tab(2).id == 3

    def test_activate(self) -> None:
        mirror = TabMirror()
        mirror.upsert(TabInfo(id=1, window_id=1, active=True))
        mirror.upsert(TabInfo(id=2, window_id=1))
        mirror.activate(2, 1)
        assert mirror.active_tab(1).id == 2

    def test_activate_unknown_tab_clears_window(self) -> None:
        mirror = TabMirror()
        mirror.upsert(TabInfo(id=1, window_id=1, active=True))
        mirror.activate(5, 1)
        assert mirror.active_tab(1) is None

    def test_remove(self) -> None:
        mirror = TabMirror()
        mirror.upsert(TabInfo(id=1, window_id=1))
        mirror.remove(1)
        mirror.remove(1)
        assert mirror.tabs() == []

    def test_close_window(self) -> None:
        closed: list[int] = []
        mirror = TabMirror(on_close_window=closed.append)
        mirror.upsert(TabInfo(id=1, window_id=7))
        mirror.upsert(TabInfo(id=2, window_id=8))
        mirror.close_window(7)
        assert closed == [7]
        assert [t.id for t in mirror.tabs()] == [2]
