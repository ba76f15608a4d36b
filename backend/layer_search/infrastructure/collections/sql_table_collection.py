"""SQL table collection: a local layer stored as one table in the layer database.

Used for uploaded layers. The compiled where clause is applied verbatim,
so it must be valid SQL for the backing engine (SQLite by default).
"""

import json
import logging
import re
import uuid
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    Table,
    Text,
    select,
    text,
)
from sqlalchemy.dialects.sqlite.base import SQLiteIdentifierPreparer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from layer_search.application.interfaces import QueryableCollection
from layer_search.domain.entities import FieldDescriptor, FieldType, QueryOptions, Record
from layer_search.domain.exceptions import CollectionQueryError

logger = logging.getLogger(__name__)

ID_COLUMN = "OBJECTID"
GEOMETRY_COLUMN = "_geometry"

_COLUMN_TYPES = {
    FieldType.STRING: Text,
    FieldType.INTEGER: Integer,
    FieldType.DOUBLE: Float,
    FieldType.OTHER: Text,
}

_NON_WORD_RE = re.compile(r"\W+")
_RESERVED_WORDS = frozenset(SQLiteIdentifierPreparer.reserved_words)


def column_names(keys: Iterable[str]) -> dict[str, str]:
    """Map attribute names to unique column names usable unquoted in a where clause.

    Non-word characters become underscores, a leading digit gets an ``f_``
    prefix and reserved words get a trailing underscore. SQLite column names
    are case-insensitive, so collisions are detected case-insensitively and
    resolved with a numeric suffix.
    """
    taken = {ID_COLUMN.casefold(), GEOMETRY_COLUMN.casefold()}
    names: dict[str, str] = {}
    for key in keys:
        if key in names:
            continue
        base = _NON_WORD_RE.sub("_", key).strip("_") or "field"
        if base[0].isdigit():
            base = f"f_{base}"
        if base.casefold() in _RESERVED_WORDS:
            base = f"{base}_"
        name, suffix = base, 2
        while name.casefold() in taken:
            name, suffix = f"{base}_{suffix}", suffix + 1
        taken.add(name.casefold())
        names[key] = name
    return names


class SQLTableCollection(QueryableCollection):
    """Infrastructure adapter: a layer backed by a SQLAlchemy table.

    Records come back in insertion order. Geometry is kept as GeoJSON text
    in a reserved column and is never exposed as an attribute.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table: Table,
        fields: Sequence[FieldDescriptor],
        title: str = "",
        ref: str = "",
    ):
        self.title = title or table.name
        self.ref = ref
        self._engine = engine
        self._table = table
        self._fields = [FieldDescriptor(ID_COLUMN, ID_COLUMN, FieldType.INTEGER), *fields]

    @classmethod
    async def create(
        cls,
        engine: AsyncEngine,
        title: str,
        fields: Sequence[FieldDescriptor],
        *,
        table_name: str | None = None,
    ) -> "SQLTableCollection":
        """Create the backing table and return the collection."""
        usable = [f for f in fields if f.name not in (ID_COLUMN, GEOMETRY_COLUMN)]
        table = Table(
            table_name or f"layer_{uuid.uuid4().hex[:12]}",
            MetaData(),
            Column(ID_COLUMN, Integer, primary_key=True, autoincrement=True),
            *(Column(f.name, _COLUMN_TYPES[f.type]) for f in usable),
            Column(GEOMETRY_COLUMN, Text),
        )
        async with engine.begin() as conn:
            await conn.run_sync(table.metadata.create_all)
        logger.info("Created layer table %s (%s) with %d fields", table.name, title, len(usable))
        return cls(engine, table, usable, title=title)

    @property
    def table_name(self) -> str:
        return self._table.name

    async def insert(self, records: Sequence[Record]) -> int:
        """Append records; unknown attribute keys are dropped, missing ones stored as NULL."""
        if not records:
            return 0
        names = [f.name for f in self._fields if f.name != ID_COLUMN]
        rows = [
            {
                **{name: r.attributes.get(name) for name in names},
                GEOMETRY_COLUMN: json.dumps(r.geometry) if r.geometry is not None else None,
            }
            for r in records
        ]
        async with self._engine.begin() as conn:
            await conn.execute(self._table.insert(), rows)
        return len(rows)

    async def list_fields(self) -> list[FieldDescriptor]:
        return list(self._fields)

    async def query(self, where: str, options: QueryOptions) -> list[Record]:
        columns = self._attribute_columns(options.out_fields)
        selected = list(columns)
        with_geometry = options.return_geometry and not options.return_distinct_values
        if with_geometry:
            selected.append(self._table.c[GEOMETRY_COLUMN])

        stmt = select(*selected).where(text(where))
        if options.return_distinct_values:
            stmt = stmt.distinct()
        else:
            stmt = stmt.order_by(self._table.c[ID_COLUMN])
        if options.max_records is not None:
            stmt = stmt.limit(options.max_records)

        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).mappings().all()
        except SQLAlchemyError as exc:
            reason = getattr(exc, "orig", None) or exc
            raise CollectionQueryError(self.ref or self.table_name, str(reason)) from exc

        return [self._to_record(row, columns, with_geometry) for row in rows]

    # ── Private helpers ──────────────────────────────────────────────

    def _attribute_columns(self, out_fields: Sequence[str]) -> list[Column]:
        if not out_fields or "*" in out_fields:
            return [c for c in self._table.columns if c.name != GEOMETRY_COLUMN]
        missing = [name for name in out_fields if name not in self._table.c]
        if missing:
            raise CollectionQueryError(
                self.ref or self.table_name, f"Unknown field(s): {', '.join(missing)}"
            )
        return [self._table.c[name] for name in out_fields]

    @staticmethod
    def _to_record(row: Any, columns: Sequence[Column], with_geometry: bool) -> Record:
        geometry = None
        if with_geometry and row[GEOMETRY_COLUMN] is not None:
            geometry = json.loads(row[GEOMETRY_COLUMN])
        return Record(
            attributes={c.name: row[c.name] for c in columns},
            geometry=geometry,
        )
