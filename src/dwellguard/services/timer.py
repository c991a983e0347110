"""Dwell timer bookkeeping.

The timer converts wall-clock focus into ledger seconds. Only these two
functions mutate ``state.timer``; everything else reads it.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from dwellguard.services.state import ActiveTimer

if TYPE_CHECKING:
    from dwellguard.services.state import EngineState


def elapsed_seconds(start_ms: int, now_ms: int) -> int:
    """Whole seconds between two instants, halves rounded up."""
    return math.floor((now_ms - start_ms) / 1000 + 0.5)


def flush(state: EngineState, now_ms: int) -> int:
    """Move elapsed whole seconds from the running timer into the ledger.

    Returns the seconds added. A non-positive delta (clock skew, a second
    flush in the same instant) changes nothing, not even the start.
    """
    timer = state.timer
    if timer is None:
        return 0
    elapsed = elapsed_seconds(timer.start_ms, now_ms)
    if elapsed <= 0:
        return 0
    state.usage[timer.domain] = state.usage.get(timer.domain, 0) + elapsed
    timer.start_ms = now_ms
    return elapsed


def switch(state: EngineState, domain: str | None, now_ms: int) -> int:
    """Close out the current interval, then track *domain* if it is governed.

    Returns the seconds flushed for the previous domain.
    """
    flushed = flush(state, now_ms)
    if domain is not None and state.policy.tracks(domain):
        state.timer = ActiveTimer(domain=domain, start_ms=now_ms)
    else:
        state.timer = None
    return flushed
