"""Database engine setup for SQLite with WAL mode.

SQLite stands in for the platform's durable storage and rule table.
WAL mode lets a ``listen`` loop and one-shot CLI invocations share the
file. The DB lives at ``{data_dir}/dwellguard.db``.

SQLAlchemy Core (not ORM): every operation is a short key/value or
rule-table statement with no identity to track.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from dwellguard.infrastructure.database.schema import metadata

DEFAULT_DB_FILENAME = "dwellguard.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def init_database(data_dir: Path, db_filename: str = DEFAULT_DB_FILENAME) -> Engine:
    """Initialize the database at ``{data_dir}/{db_filename}``.

    Creates the directory and all tables. Idempotent: safe to call on an
    existing database.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(data_dir / db_filename)
    metadata.create_all(engine)
    return engine
