"""SQLite database engine and schema via SQLAlchemy Core."""

from dwellguard.infrastructure.database.engine import create_db_engine, init_database
from dwellguard.infrastructure.database.schema import (
    dynamic_rules,
    event_wal,
    kv_store,
    metadata,
)

__all__ = [
    "create_db_engine",
    "dynamic_rules",
    "event_wal",
    "init_database",
    "kv_store",
    "metadata",
]
