"""PolicyConfig: the cached ``{domain: daily limit}`` view.

The settings collaborator owns the durable document::

    {"restrictedDomains": {"youtube.com": {"dailyLimitMinutes": 30}}}

The engine only ever reads it and replaces its copy wholesale.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from dwellguard.domain.classifier import normalize_domain

SETTINGS_KEY = "settings"


class DomainLimit(BaseModel):
    """One ``restrictedDomains`` entry.

    ``dailyLimitSeconds`` wins over ``dailyLimitMinutes`` when both are set.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    daily_limit_minutes: int | None = Field(default=None, alias="dailyLimitMinutes", gt=0)
    daily_limit_seconds: int | None = Field(default=None, alias="dailyLimitSeconds", gt=0)

    @model_validator(mode="after")
    def _require_limit(self) -> DomainLimit:
        if self.daily_limit_minutes is None and self.daily_limit_seconds is None:
            msg = "dailyLimitMinutes or dailyLimitSeconds is required"
            raise ValueError(msg)
        return self

    @property
    def limit_seconds(self) -> int:
        if self.daily_limit_seconds is not None:
            return self.daily_limit_seconds
        assert self.daily_limit_minutes is not None
        return self.daily_limit_minutes * 60


class SettingsDocument(BaseModel):
    """The synced ``settings`` value as written by the settings collaborator."""

    model_config = {"frozen": True, "populate_by_name": True}

    restricted_domains: dict[str, Any] = Field(
        default_factory=dict, alias="restrictedDomains"
    )


class PolicyConfig(BaseModel):
    """Normalized domain → limit-in-seconds mapping.

    INVARIANT: keys are unique, lowercase, and free of scheme / ``www.``.
    """

    model_config = {"frozen": True}

    limits: dict[str, int] = Field(default_factory=dict)

    @field_validator("limits")
    @classmethod
    def _positive_limits(cls, value: dict[str, int]) -> dict[str, int]:
        for domain, seconds in value.items():
            if seconds <= 0:
                msg = f"limit for {domain!r} must be positive"
                raise ValueError(msg)
        return value

    @classmethod
    def empty(cls) -> PolicyConfig:
        return cls()

    @classmethod
    def from_settings(cls, raw: Any, *, skipped: list[str] | None = None) -> PolicyConfig:
        """Build a policy from the durable settings document.

        None means "no settings yet" and yields an empty policy. Entries are
        validated one at a time: an entry with a bad limit or a key that is
        not a trackable domain is left out and its key appended to
        *skipped*; the remaining entries still apply.

        Raises:
            ValueError: If *raw* is present but is not a settings mapping.
        """
        if raw is None:
            return cls.empty()
        try:
            doc = SettingsDocument.model_validate(raw)
        except ValidationError as exc:
            msg = f"Malformed settings document: {exc.error_count()} error(s)"
            raise ValueError(msg) from exc

        limits: dict[str, int] = {}
        for key, entry in doc.restricted_domains.items():
            domain = normalize_domain(key)
            try:
                limit = DomainLimit.model_validate(entry)
            except ValidationError:
                limit = None
            if domain is None or limit is None:
                if skipped is not None:
                    skipped.append(key)
                continue
            limits[domain] = limit.limit_seconds
        return cls(limits=limits)

    def to_settings(self) -> dict[str, Any]:
        """Render back to the durable document shape (minutes where exact)."""
        entries: dict[str, dict[str, int]] = {}
        for domain, seconds in sorted(self.limits.items()):
            if seconds % 60 == 0:
                entries[domain] = {"dailyLimitMinutes": seconds // 60}
            else:
                entries[domain] = {"dailyLimitSeconds": seconds}
        return {"restrictedDomains": entries}

    @property
    def tracked_domains(self) -> frozenset[str]:
        return frozenset(self.limits)

    def tracks(self, domain: str | None) -> bool:
        return domain is not None and domain in self.limits

    def limit_seconds(self, domain: str) -> int | None:
        """Daily limit for *domain*, or None if it is not tracked."""
        return self.limits.get(domain)

    def with_limit(self, domain: str, seconds: int) -> PolicyConfig:
        return PolicyConfig(limits={**self.limits, domain: seconds})

    def without(self, domain: str) -> PolicyConfig:
        return PolicyConfig(limits={d: s for d, s in self.limits.items() if d != domain})
