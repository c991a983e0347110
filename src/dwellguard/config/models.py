"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``dwellguard.toml`` only holds
overrides. An empty file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """[engine] section."""

    model_config = {"frozen": True}

    tick_interval_minutes: float = Field(default=1.0, gt=0)
    retention_days: int = Field(default=7, ge=0)
    alarm_name: str = "persist-timer"


class RulesConfig(BaseModel):
    """[rules] section: the reserved dynamic-rule id range and rule shape."""

    model_config = {"frozen": True}

    id_start: int = Field(default=1000, ge=1)
    id_span: int = Field(default=10000, ge=1)
    priority: int = Field(default=1, ge=1)
    resource_types: list[str] = Field(default_factory=lambda: ["main_frame", "sub_frame"])


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    db_filename: str = "dwellguard.db"


class DwellConfig(BaseModel):
    """Root configuration composing all TOML sections."""

    model_config = {"frozen": True}

    engine: EngineConfig = Field(default_factory=EngineConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
