"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs (CLI flags passed by Click)
  2. Env vars with the ``DWELLGUARD_`` prefix
  3. ``dwellguard.toml`` discovered via walk-up
  4. Code defaults baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`dwellguard.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from dwellguard.config.discovery import find_config
from dwellguard.config.models import EngineConfig, RulesConfig, StorageConfig

DEFAULT_DATA_DIRNAME = ".dwellguard"


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``dwellguard.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class DwellSettings(BaseSettings):
    """Unified settings for the dwellguard engine and CLI.

    Attributes:
        data_dir: Directory holding the SQLite database. None resolves to
            ``.dwellguard/`` next to the discovered config file, or
            ``~/.dwellguard`` when there is none.
        config_path: The TOML file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DWELLGUARD_",
        "env_nested_delimiter": "__",
    }

    data_dir: Path | None = None
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    engine: EngineConfig = Field(default_factory=EngineConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @property
    def data_root(self) -> Path:
        """Resolved data directory."""
        if self.data_dir is not None:
            return self.data_dir
        if self.config_path is not None:
            return self.config_path.parent / DEFAULT_DATA_DIRNAME
        return Path.home() / DEFAULT_DATA_DIRNAME

    @property
    def db_path(self) -> Path:
        return self.data_root / self.storage.db_filename

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        data_dir: Path | str | None = None,
        **cli_flags: Any,
    ) -> DwellSettings:
        """Construct settings from a CLI invocation.

        Discovers ``dwellguard.toml`` via walk-up (or explicit *config_path*)
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config()

        overrides: dict[str, Any] = dict(cli_flags)
        if data_dir is not None:
            overrides["data_dir"] = Path(data_dir)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
