"""Tests for config discovery and loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from dwellguard.config.discovery import CONFIG_ENV_VAR, find_config, load_config
from dwellguard.config.models import DwellConfig


@pytest.fixture(autouse=True)
def _no_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


def test_find_config_walks_up(tmp_path: Path) -> None:
    cfg = tmp_path / "dwellguard.toml"
    cfg.write_text("", encoding="utf-8")
    nested = tmp_path / "x" / "y"
    nested.mkdir(parents=True)
    assert find_config(nested) == cfg.resolve()


def test_env_var_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "dwellguard.toml").write_text("", encoding="utf-8")
    other = tmp_path / "elsewhere.toml"
    other.write_text("", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(other))
    assert find_config(tmp_path) == other


def test_env_var_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.toml"))
    assert find_config(tmp_path) is None


def test_load_config_empty_file(tmp_path: Path) -> None:
    cfg = tmp_path / "dwellguard.toml"
    cfg.write_text("", encoding="utf-8")
    assert load_config(cfg) == DwellConfig()


def test_load_config_sparse(tmp_path: Path) -> None:
    cfg = tmp_path / "dwellguard.toml"
    cfg.write_text("[rules]\npriority = 3\n", encoding="utf-8")
    config = load_config(cfg)
    assert isinstance(config, DwellConfig)
    assert config.rules.priority == 3
    assert config.engine == DwellConfig().engine
