"""
Thin data-access layer shared by every Record table.
Reads and writes go through short-lived sessions; schema operations
(`auto_migrate` / `auto_upgrade`) go through the engine.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Sequence, Tuple

import structlog
from sqlalchemy import Column, MetaData, Table, func, insert, inspect, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.schema import CreateColumn

log = structlog.get_logger(__name__)

# (column name, descending?)
Ordering = Sequence[Tuple[str, bool]]


class RecordStore:
    """Thin data‑access layer around Record tables."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _new_session(self) -> Session:  # separate to keep pylint happy
        return Session(bind=self.engine)

    # ---- writes ---------------------------------------------------------
    def insert(self, table: Table, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row and return its primary key values."""
        with self._new_session() as s:
            result = s.execute(insert(table).values(**values))
            s.commit()
            pk = result.inserted_primary_key or ()
        return {col.name: v for col, v in zip(table.primary_key.columns, pk)}

    def update(
        self, table: Table, key: Mapping[str, Any], values: Mapping[str, Any]
    ) -> int:
        """Update the row identified by `key`; returns the matched row count."""
        with self._new_session() as s:
            q = update(table).where(*_equals(table, key)).values(**values)
            result = s.execute(q)
            s.commit()
            return result.rowcount

    # ---- reads ----------------------------------------------------------
    def fetch(
        self,
        table: Table,
        filters: Mapping[str, Any] | None = None,
        order_by: Ordering = (),
        limit: int | None = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield matching rows as plain dicts."""
        q = select(table).where(*_equals(table, filters or {}))
        for name, descending in order_by:
            col = table.c[name]
            q = q.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            q = q.limit(limit)
        with self._new_session() as s:
            rows = [dict(row._mapping) for row in s.execute(q)]
        yield from rows

    def count(self, table: Table, filters: Mapping[str, Any] | None = None) -> int:
        q = select(func.count()).select_from(table).where(*_equals(table, filters or {}))
        with self._new_session() as s:
            return int(s.execute(q).scalar_one())

    # ---- schema ---------------------------------------------------------
    def auto_migrate(self, table: Table) -> None:
        """Drop and recreate `table` (destroys its rows)."""
        table.drop(self.engine, checkfirst=True)
        table.create(self.engine)
        log.info("table_migrated", table=table.name)

    def auto_upgrade(self, table: Table) -> None:
        """Create `table` if missing, otherwise add any columns it lacks."""
        inspector = inspect(self.engine)
        if not inspector.has_table(table.name):
            table.create(self.engine)
            log.info("table_created", table=table.name)
            return

        existing = {c["name"] for c in inspector.get_columns(table.name)}
        missing = [c for c in table.columns if c.name not in existing]
        if not missing:
            return

        # added columns are nullable so rows written before the upgrade stay valid
        added = Table(
            table.name,
            MetaData(),
            *(Column(c.name, c.type, nullable=True) for c in missing),
        )
        preparer = self.engine.dialect.identifier_preparer
        with self.engine.begin() as conn:
            for col in added.columns:
                ddl = CreateColumn(col).compile(dialect=self.engine.dialect)
                conn.execute(
                    text(f"ALTER TABLE {preparer.format_table(table)} ADD COLUMN {ddl}")
                )
        log.info("table_upgraded", table=table.name, added=[c.name for c in missing])


def _equals(table: Table, values: Mapping[str, Any]) -> list:
    return [table.c[name] == value for name, value in values.items()]
