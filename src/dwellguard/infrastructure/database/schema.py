"""SQLAlchemy Core table definitions for the dwellguard database.

- ``kv_store``: the two durable key/value areas (``local`` and ``sync``),
  JSON-encoded values.
- ``dynamic_rules``: the block-rule table the engine owns.
- ``event_wal``: plugin hook dispatch log.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
)

metadata = MetaData()

kv_store = Table(
    "kv_store",
    metadata,
    Column("area", Text, nullable=False),  # local | sync
    Column("key", Text, nullable=False),
    Column("value", Text, nullable=False),  # JSON
    Column("modified", Text, nullable=False),
    PrimaryKeyConstraint("area", "key"),
)

dynamic_rules = Table(
    "dynamic_rules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("domain", Text, nullable=False),
    Column("priority", Integer, nullable=False, default=1, server_default="1"),
    Column("action", Text, nullable=False),
    Column("url_filter", Text, nullable=False),
    Column("resource_types", Text, nullable=False),  # JSON array
    Column("created", Text, nullable=False),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

Index("ix_dynamic_rules_domain", dynamic_rules.c.domain)
Index("ix_event_wal_status", event_wal.c.status)
