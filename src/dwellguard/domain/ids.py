"""Deterministic dynamic-rule ids.

Each blocked domain owns exactly one dynamic rule whose id is a pure
function of the domain string: a 31-multiplier string hash folded into
``[id_start, id_start + id_span)``. Statically declared rules must use ids
below ``id_start``.

INVARIANT: The id for a domain never changes across calls or restarts.
Two domains hashing to the same id share a slot; the later write wins.
"""

from __future__ import annotations

RULE_ID_START = 1000
RULE_ID_SPAN = 10000

_INT32_MASK = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    """Wrap an arbitrary int to signed 32-bit."""
    value &= _INT32_MASK
    return value - 0x1_0000_0000 if value >= 0x8000_0000 else value


def domain_hash(domain: str) -> int:
    """Signed 32-bit ``h = h * 31 + unit`` hash over UTF-16 code units."""
    encoded = domain.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32(h * 31 + unit)
    return h


def rule_id_for(
    domain: str,
    *,
    id_start: int = RULE_ID_START,
    id_span: int = RULE_ID_SPAN,
) -> int:
    """Return the dynamic rule id reserved for *domain*.

    Examples:
        >>> rule_id_for("youtube.com") == rule_id_for("youtube.com")
        True
        >>> RULE_ID_START <= rule_id_for("reddit.com") < RULE_ID_START + RULE_ID_SPAN
        True
    """
    if id_span <= 0:
        msg = f"id_span must be positive, got {id_span}"
        raise ValueError(msg)
    return id_start + abs(domain_hash(domain)) % id_span


def owns_rule_id(
    rule_id: int,
    *,
    id_start: int = RULE_ID_START,
    id_span: int = RULE_ID_SPAN,
) -> bool:
    """Whether *rule_id* falls inside the engine's reserved range."""
    return id_start <= rule_id < id_start + id_span
