"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions (for example ``used_seconds`` vs
``used``) fail fast in tests and during development.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class DomainUsage(BaseModel):
    """One row of the status report."""

    model_config = ConfigDict(extra="allow")

    domain: str
    used_seconds: int = Field(ge=0)
    limit_seconds: int | None = None
    remaining_seconds: int | None = None
    tracked: bool
    blocked: bool
    rule_id: int


class ActiveTimerData(BaseModel):
    domain: str
    since: str
    pending_seconds: int = Field(ge=0)


class StatusResultData(BaseModel):
    """Payload contract for ``StatusService.summary``."""

    day: str
    domains: list[DomainUsage]
    active: ActiveTimerData | None = None
    rule_ids: list[int]
    ledger_days: list[str]
    last_reset_day: str | None = None


class PolicyEntry(BaseModel):
    domain: str
    limit_seconds: int = Field(gt=0)


class PolicyShowData(BaseModel):
    """Payload contract for ``PolicyAdmin.show``."""

    domains: list[PolicyEntry]
    count: int
