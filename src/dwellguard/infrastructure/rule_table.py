"""Dynamic block-rule table.

Mirrors the platform's dynamic rule API: one call removes a set of ids
and then adds a set of rules, atomically. Removing an unknown id is a
no-op, and re-adding a rule identical to the stored one leaves the row
untouched. Only :meth:`RuleTable.get_dynamic_rules` enumerates the table.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine

from dwellguard.domain.rules import BlockRule
from dwellguard.infrastructure.database.schema import dynamic_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleUpdate:
    """What a single :meth:`RuleTable.update_dynamic_rules` call changed.

    Attributes:
        added_ids: Ids that did not exist before the call.
        replaced_ids: Ids that existed with different content.
        unchanged_ids: Ids re-added with identical content.
        removed_ids: Ids that existed and are gone after the call.
    """

    added_ids: list[int] = field(default_factory=list)
    replaced_ids: list[int] = field(default_factory=list)
    unchanged_ids: list[int] = field(default_factory=list)
    removed_ids: list[int] = field(default_factory=list)

    @property
    def mutated(self) -> bool:
        return bool(self.added_ids or self.replaced_ids or self.removed_ids)


def _row_to_rule(row: Any) -> BlockRule:
    return BlockRule(
        id=row.id,
        domain=row.domain,
        priority=row.priority,
        action=row.action,
        url_filter=row.url_filter,
        resource_types=json.loads(row.resource_types),
    )


class RuleTable:
    """SQLite-backed dynamic rule table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def update_dynamic_rules(
        self,
        *,
        remove_rule_ids: Iterable[int] = (),
        add_rules: Iterable[BlockRule] = (),
    ) -> RuleUpdate:
        """Remove *remove_rule_ids*, then add *add_rules*, in one transaction.

        Raises:
            ValueError: If *add_rules* contains the same id twice.
        """
        removing = set(remove_rule_ids)
        adding = list(add_rules)
        add_ids = [rule.id for rule in adding]
        if len(add_ids) != len(set(add_ids)):
            msg = f"Duplicate rule ids in add_rules: {sorted(add_ids)}"
            raise ValueError(msg)
        touched = removing | set(add_ids)
        if not touched:
            return RuleUpdate()

        created = datetime.now(UTC).isoformat()
        with self._engine.begin() as conn:
            before = {
                row.id: _row_to_rule(row)
                for row in conn.execute(
                    select(dynamic_rules).where(dynamic_rules.c.id.in_(sorted(touched)))
                ).fetchall()
            }
            unchanged = {rule.id for rule in adding if before.get(rule.id) == rule}
            doomed = (touched & before.keys()) - unchanged
            if doomed:
                conn.execute(delete(dynamic_rules).where(dynamic_rules.c.id.in_(sorted(doomed))))
            for rule in adding:
                if rule.id in unchanged:
                    continue
                conn.execute(
                    insert(dynamic_rules).values(
                        id=rule.id,
                        domain=rule.domain,
                        priority=rule.priority,
                        action=str(rule.action),
                        url_filter=rule.url_filter,
                        resource_types=json.dumps(list(rule.resource_types)),
                        created=created,
                    )
                )

        update = RuleUpdate(
            added_ids=sorted(i for i in add_ids if i not in before),
            replaced_ids=sorted(i for i in add_ids if i in before and i not in unchanged),
            unchanged_ids=sorted(unchanged),
            removed_ids=sorted(i for i in removing if i in before and i not in add_ids),
        )
        if update.mutated:
            logger.debug(
                "Rule table updated: +%s ~%s -%s",
                update.added_ids,
                update.replaced_ids,
                update.removed_ids,
            )
        return update

    def get_dynamic_rules(self) -> list[BlockRule]:
        """Enumerate every dynamic rule, ordered by id."""
        with self._engine.connect() as conn:
            rows = conn.execute(select(dynamic_rules).order_by(dynamic_rules.c.id)).fetchall()
        return [_row_to_rule(row) for row in rows]

    def get_rule(self, rule_id: int) -> BlockRule | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(dynamic_rules).where(dynamic_rules.c.id == rule_id)).first()
        return _row_to_rule(row) if row is not None else None
