"""BlockRule: the dynamic network-block rule for one domain."""

from __future__ import annotations

from pydantic import BaseModel, Field

from dwellguard.domain.ids import RULE_ID_SPAN, RULE_ID_START, rule_id_for
from dwellguard.domain.types import ResourceType, RuleAction

DEFAULT_RESOURCE_TYPES: tuple[str, ...] = (
    ResourceType.MAIN_FRAME.value,
    ResourceType.SUB_FRAME.value,
)


class BlockRule(BaseModel):
    """A dynamic rule blocking requests to ``domain`` and its subdomains.

    Existence of the rule is the enforcement signal; there is no
    enabled flag.
    """

    model_config = {"frozen": True}

    id: int
    domain: str
    priority: int = 1
    action: RuleAction = RuleAction.BLOCK
    url_filter: str
    resource_types: list[str] = Field(default_factory=lambda: list(DEFAULT_RESOURCE_TYPES))

    @classmethod
    def for_domain(
        cls,
        domain: str,
        *,
        id_start: int = RULE_ID_START,
        id_span: int = RULE_ID_SPAN,
        priority: int = 1,
        resource_types: list[str] | None = None,
    ) -> BlockRule:
        return cls(
            id=rule_id_for(domain, id_start=id_start, id_span=id_span),
            domain=domain,
            priority=priority,
            url_filter=f"||{domain}",
            resource_types=list(resource_types or DEFAULT_RESOURCE_TYPES),
        )
