"""SQLiteTableStore — durable, single-file table backend using aiosqlite."""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

try:
    import aiosqlite
except ImportError as exc:
    raise ImportError(
        "SQLiteTableStore requires the 'aiosqlite' package. "
        "Install it with: pip install aiosqlite"
    ) from exc

from anchor_registry._internal.clock import Clock, WriteStamper
from anchor_registry.exceptions import RowConflictError, RowNotFoundError, StoreUnavailableError
from anchor_registry.stores.base import (
    DEFAULT_PAGE_SIZE,
    TableEntity,
    TableFilter,
    TableSegment,
    TableStore,
    validate_table_name,
)
from anchor_registry.stores.memory import decode_token, encode_token

_COLUMN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    partition_key TEXT NOT NULL,
    row_key       TEXT NOT NULL,
    properties    TEXT NOT NULL,
    timestamp     TEXT NOT NULL,
    PRIMARY KEY (partition_key, row_key)
)
"""


@contextmanager
def _driver_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except aiosqlite.Error as exc:
        raise StoreUnavailableError(operation, str(exc)) from exc


def _row_to_entity(row: tuple[str, str, str, str]) -> TableEntity:
    partition_key, row_key, properties, timestamp = row
    return TableEntity(
        partition_key=partition_key,
        row_key=row_key,
        properties=json.loads(properties),
        timestamp=datetime.fromisoformat(timestamp),
    )


class SQLiteTableStore(TableStore):
    """Persistent table backed by a single SQLite file.

    Parameters:
        db_path:    Path to the SQLite database file.  Use ``":memory:"``
                    for an in-memory database (useful for testing).
        table_name: Name of the table holding the rows.
        page_size:  Maximum number of rows per scan segment.
        clock:      Injectable clock for write timestamps.
    """

    def __init__(
        self,
        db_path: str = "anchor_cache.db",
        table_name: str = "AnchorCache",
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Clock | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._db_path = db_path
        self._table = validate_table_name(table_name)
        self._page_size = page_size
        self._stamper = WriteStamper(clock)
        self._db: aiosqlite.Connection | None = None

    def _connection(self, operation: str) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreUnavailableError(operation, f"table {self._table} is not open")
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # ── TableStore protocol ──────────────────────────────────

    async def ensure_ready(self) -> None:
        if self._db is not None:
            return
        with _driver_errors("ensure_ready"):
            db = await aiosqlite.connect(self._db_path)
            try:
                await db.execute(_CREATE_TABLE.format(table=self._table))
                await db.commit()
            except aiosqlite.Error:
                await db.close()
                raise
        self._db = db

    async def retrieve(self, partition_key: str, row_key: str) -> TableEntity | None:
        db = self._connection("retrieve")
        with _driver_errors("retrieve"):
            cursor = await db.execute(
                f"SELECT partition_key, row_key, properties, timestamp FROM {self._table} "
                "WHERE partition_key = ? AND row_key = ?",
                (partition_key, row_key),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_entity(row)

    async def insert(self, entity: TableEntity) -> TableEntity:
        db = self._connection("insert")
        timestamp = self._stamper.stamp()
        with _driver_errors("insert"):
            try:
                await db.execute(
                    f"INSERT INTO {self._table} "
                    "(partition_key, row_key, properties, timestamp) VALUES (?, ?, ?, ?)",
                    (
                        entity.partition_key,
                        entity.row_key,
                        json.dumps(entity.properties),
                        timestamp.isoformat(),
                    ),
                )
                await db.commit()
            except aiosqlite.IntegrityError as exc:
                await db.rollback()
                raise RowConflictError(
                    "insert", f"row {(entity.partition_key, entity.row_key)} already exists"
                ) from exc
        return TableEntity(
            partition_key=entity.partition_key,
            row_key=entity.row_key,
            properties=dict(entity.properties),
            timestamp=timestamp,
        )

    async def query_segment(
        self,
        table_filter: TableFilter | None = None,
        continuation_token: str | None = None,
    ) -> TableSegment:
        db = self._connection("query")
        clauses: list[str] = []
        params: list[str | int] = []

        if continuation_token is not None:
            partition_key, row_key = decode_token(continuation_token)
            clauses.append("(partition_key > ? OR (partition_key = ? AND row_key > ?))")
            params.extend([partition_key, partition_key, row_key])

        if table_filter is not None:
            if not _COLUMN.match(table_filter.column):
                raise ValueError(f"Invalid column name {table_filter.column!r}")
            comparison = "=" if table_filter.op == "eq" else "!="
            clauses.append(f"json_extract(properties, ?) {comparison} ?")
            params.extend([f"$.{table_filter.column}", table_filter.value])

        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        params.append(self._page_size + 1)

        with _driver_errors("query"):
            cursor = await db.execute(
                f"SELECT partition_key, row_key, properties, timestamp FROM {self._table} "
                f"{where}ORDER BY partition_key, row_key LIMIT ?",
                params,
            )
            rows = await cursor.fetchall()

        entities = [_row_to_entity(row) for row in rows[: self._page_size]]
        if len(rows) > self._page_size:
            last = entities[-1]
            return TableSegment(entities, encode_token(last.partition_key, last.row_key))
        return TableSegment(entities)

    async def delete(self, partition_key: str, row_key: str) -> None:
        db = self._connection("delete")
        with _driver_errors("delete"):
            cursor = await db.execute(
                f"DELETE FROM {self._table} WHERE partition_key = ? AND row_key = ?",
                (partition_key, row_key),
            )
            await db.commit()
        if cursor.rowcount == 0:
            raise RowNotFoundError("delete", f"row {(partition_key, row_key)} does not exist")
