"""Host: the durable platform the engine runs against.

The Host is the single dependency injected into every service. It owns
the SQLite engine and exposes:

- **Storage**: the ``local`` and ``sync`` key/value areas
  (:class:`StorageArea`), each with its own change stream.
- **Rules**: the dynamic block-rule table (:class:`RuleTable`).
- **Clock**: an injectable ``() -> datetime`` returning naive local time.
  Day boundaries are local calendar days.
- **Event bus**: the plugin notification bus (optional).

Unlike a transactional repository, the Host offers no cross-call
transaction: each storage or rule write commits on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from dwellguard.domain.days import to_epoch_ms
from dwellguard.domain.types import StorageAreaName
from dwellguard.infrastructure.database.engine import init_database
from dwellguard.infrastructure.rule_table import RuleTable
from dwellguard.infrastructure.storage import StorageArea

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from dwellguard.config.settings import DwellSettings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class Host:
    """Storage areas, rule table, clock, and plugin bus for one data directory.

    Constructed once per CLI invocation (or ``listen`` loop) from
    :class:`DwellSettings`. Services receive it via :class:`BaseService`.
    """

    def __init__(self, settings: DwellSettings, *, clock: Clock | None = None) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.data_root, settings.storage.db_filename)
        self._clock: Clock = clock or datetime.now
        self._local = StorageArea(self._engine, StorageAreaName.LOCAL)
        self._sync = StorageArea(self._engine, StorageAreaName.SYNC)
        self._rules = RuleTable(self._engine)
        self._event_bus: Any | None = None

    @property
    def settings(self) -> DwellSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def local(self) -> StorageArea:
        """Device-local area: usage ledgers, timer snapshot, reset marker."""
        return self._local

    @property
    def sync(self) -> StorageArea:
        """Synced area: the settings document."""
        return self._sync

    @property
    def rules(self) -> RuleTable:
        return self._rules

    @property
    def event_bus(self) -> Any | None:
        """The plugin event bus (None if not initialized)."""
        return self._event_bus

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return self._clock()

    def now_ms(self) -> int:
        return to_epoch_ms(self._clock())

    def today(self) -> date:
        return self._clock().date()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_event_bus(self) -> None:
        """Discover entry-point plugins and wire up the EventBus."""
        from dwellguard.plugins.event_bus import EventBus
        from dwellguard.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load()
        self._event_bus = EventBus(self._engine, pm)

    def close(self) -> None:
        """Release the database engine."""
        self._engine.dispose()
