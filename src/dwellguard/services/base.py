"""BaseService: foundation for all dwellguard services.

Every service receives a :class:`Host` at construction time. The Host
provides the storage areas, the rule table, the clock, and the plugin bus.
Services are cheap to build; construct them per operation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dwellguard.infrastructure.host import Host

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes."""

    def __init__(self, host: Host) -> None:
        self._host = host

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a plugin hook. No-op if the event bus is not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._host.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")

    def _drain_events(self, warnings: list[str]) -> dict[str, int]:
        """Retry undelivered hook calls, then prune delivered ones.

        Called at initialization and day rollover so the WAL stays bounded.
        """
        bus = self._host.event_bus
        if bus is None:
            return {"retried": 0, "pruned": 0}
        try:
            retried = bus.drain()
            pruned = bus.prune_completed()
        except Exception:
            logger.debug("Event drain failed", exc_info=True)
            warnings.append("Event drain failed")
            return {"retried": 0, "pruned": 0}
        return {"retried": len(retried), "pruned": pruned}
