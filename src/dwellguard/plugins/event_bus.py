"""WAL-backed plugin event dispatch via pluggy.

Events are written to the ``event_wal`` table before dispatch, so a hook
that fails (or a process stopped mid-dispatch) leaves a ``pending`` or
``failed`` row behind. ``drain()`` retries those rows; after
``max_retries`` attempts an event is parked as ``dead_letter``.
``prune_completed()`` deletes delivered rows so the table only keeps what
still needs attention.

Dispatch is synchronous: the engine runs one handler at a time and
plugins see events in the order enforcement produced them.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from dwellguard.infrastructure.database.schema import event_wal

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from dwellguard.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class EventBus:
    """Record-then-dispatch hook calls.

    Parameters:
        engine: SQLAlchemy engine with the ``event_wal`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        max_retries: Attempts before an event is marked ``dead_letter``.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        max_retries: int = 3,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> int:
        """Write the event to the WAL, then call the hook. Returns the row id."""
        event_id = self._write_wal(hook_name, payload)
        self._execute_hook(event_id, hook_name, payload)
        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Retry pending/failed events. Returns ``{id, hook_name, status}`` per event."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_wal.c.id, event_wal.c.hook_name, event_wal.c.payload)
                .where(event_wal.c.status.in_(["pending", "failed"]))
                .order_by(event_wal.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            status = self._execute_hook(row.id, row.hook_name, json.loads(row.payload))
            results.append({"id": row.id, "hook_name": row.hook_name, "status": status})
        return results

    def prune_completed(self) -> int:
        """Delete delivered events. Dead letters are kept. Returns rows removed."""
        with self._engine.begin() as conn:
            result = conn.execute(delete(event_wal).where(event_wal.c.status == "completed"))
        return result.rowcount

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write_wal(self, hook_name: str, payload: dict[str, Any]) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(event_wal).values(
                    hook_name=hook_name,
                    payload=json.dumps(payload),
                    status="pending",
                    retries=0,
                    created=_now_iso(),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def _execute_hook(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> str:
        """Call the hook and record the outcome. Returns the new status."""
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return self._mark_completed(event_id)
        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            return self._mark_failed(event_id, str(exc))
        return self._mark_completed(event_id)

    def _mark_completed(self, event_id: int) -> str:
        with self._engine.begin() as conn:
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(status="completed", completed=_now_iso())
            )
        return "completed"

    def _mark_failed(self, event_id: int, error: str) -> str:
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_wal.c.retries).where(event_wal.c.id == event_id)
            ).scalar_one()
            new_retries = retries + 1
            status = "dead_letter" if new_retries >= self._max_retries else "failed"
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(
                    status=status,
                    error=error,
                    retries=new_retries,
                    completed=_now_iso() if status == "dead_letter" else None,
                )
            )
        return status
