"""Durable key/value storage areas with a change stream.

Two areas share the ``kv_store`` table: ``local`` (usage ledgers, timer
snapshot) and ``sync`` (the settings document). Values are JSON. Every
write commits in its own transaction and then notifies listeners with
``{key: StorageChange(old_value, new_value)}`` for keys whose value
actually changed.

Unreadable JSON is logged and reported as absent, never raised.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from dwellguard.infrastructure.database.schema import kv_store

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class StorageChange:
    """Before/after values of one key. None means absent."""

    old_value: Any = None
    new_value: Any = None


ChangeListener = Callable[[dict[str, StorageChange], str], None]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


def _decode(area: str, key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Unreadable value for %s:%s treated as absent", area, key)
        return _MISSING


class StorageArea:
    """One named key/value scope backed by SQLite."""

    def __init__(self, engine: Engine, name: str) -> None:
        self._engine = engine
        self._name = name
        self._listeners: list[ChangeListener] = []

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, keys: str | Iterable[str] | None = None) -> dict[str, Any]:
        """Return ``{key: value}`` for the requested keys that exist.

        *keys* may be a single key, an iterable of keys, or None for all.
        """
        stmt = select(kv_store.c.key, kv_store.c.value).where(kv_store.c.area == self._name)
        if keys is not None:
            wanted = [keys] if isinstance(keys, str) else list(keys)
            if not wanted:
                return {}
            stmt = stmt.where(kv_store.c.key.in_(wanted))
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        result: dict[str, Any] = {}
        for row in rows:
            value = _decode(self._name, row.key, row.value)
            if value is not _MISSING:
                result[row.key] = value
        return result

    def get_one(self, key: str, default: Any = None) -> Any:
        return self.get(key).get(key, default)

    def keys(self, prefix: str | None = None) -> list[str]:
        """All keys in this area, optionally restricted to *prefix*."""
        stmt = select(kv_store.c.key).where(kv_store.c.area == self._name)
        if prefix:
            stmt = stmt.where(kv_store.c.key.startswith(prefix, autoescape=True))
        with self._engine.connect() as conn:
            return sorted(str(k) for k in conn.execute(stmt).scalars())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(
        self, items: Mapping[str, Any], *, notify: bool = True
    ) -> dict[str, StorageChange]:
        """Upsert *items* in one transaction and notify listeners.

        With ``notify=False`` the write is silent; used when mirroring a
        change that already arrived as an event.
        """
        if not items:
            return {}
        modified = _utc_now()
        with self._engine.begin() as conn:
            before = self._current(conn, items.keys())
            for key, value in items.items():
                stmt = sqlite_insert(kv_store).values(
                    area=self._name,
                    key=key,
                    value=json.dumps(value, separators=(",", ":"), sort_keys=True),
                    modified=modified,
                )
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=[kv_store.c.area, kv_store.c.key],
                        set_={"value": stmt.excluded.value, "modified": stmt.excluded.modified},
                    )
                )
        changes = {
            key: StorageChange(old_value=before.get(key), new_value=value)
            for key, value in items.items()
            if key not in before or before[key] != value
        }
        if notify:
            self._notify(changes)
        return changes

    def remove(
        self, keys: str | Iterable[str], *, notify: bool = True
    ) -> dict[str, StorageChange]:
        """Delete *keys* (missing keys are ignored) and notify listeners."""
        doomed = [keys] if isinstance(keys, str) else list(keys)
        if not doomed:
            return {}
        with self._engine.begin() as conn:
            before = self._current(conn, doomed)
            conn.execute(
                delete(kv_store).where(kv_store.c.area == self._name, kv_store.c.key.in_(doomed))
            )
        changes = {key: StorageChange(old_value=value) for key, value in before.items()}
        if notify:
            self._notify(changes)
        return changes

    # ------------------------------------------------------------------
    # Change stream
    # ------------------------------------------------------------------

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, changes: dict[str, StorageChange]) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            try:
                listener(changes, self._name)
            except Exception:
                logger.warning("Storage listener failed for area %s", self._name, exc_info=True)

    def _current(self, conn: Connection, keys: Iterable[str]) -> dict[str, Any]:
        rows = conn.execute(
            select(kv_store.c.key, kv_store.c.value).where(
                kv_store.c.area == self._name, kv_store.c.key.in_(list(keys))
            )
        ).fetchall()
        current: dict[str, Any] = {}
        for row in rows:
            value = _decode(self._name, row.key, row.value)
            if value is not _MISSING:
                current[row.key] = value
        return current
