"""InMemoryTableStore — zero-config, dict-backed table for development and testing."""

from __future__ import annotations

import json
from bisect import bisect_left, bisect_right, insort
from dataclasses import replace

from anchor_registry._internal.clock import Clock, WriteStamper
from anchor_registry.exceptions import RowConflictError, RowNotFoundError, StoreUnavailableError
from anchor_registry.stores.base import (
    DEFAULT_PAGE_SIZE,
    TableEntity,
    TableFilter,
    TableSegment,
    TableStore,
)


def encode_token(partition_key: str, row_key: str) -> str:
    return json.dumps([partition_key, row_key])


def decode_token(token: str) -> tuple[str, str]:
    try:
        partition_key, row_key = json.loads(token)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Malformed continuation token {token!r}") from exc
    return str(partition_key), str(row_key)


class InMemoryTableStore(TableStore):
    """In-memory table keyed by ``(partition_key, row_key)``.  Data is lost on process exit.

    Parameters:
        page_size: Maximum number of rows per scan segment.
        clock:     Injectable clock for write timestamps.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, clock: Clock | None = None) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._page_size = page_size
        self._stamper = WriteStamper(clock)
        self._rows: dict[tuple[str, str], TableEntity] | None = None
        # sorted view of the keys in _rows, in scan order
        self._keys: list[tuple[str, str]] = []

    @property
    def ready(self) -> bool:
        return self._rows is not None

    def _table(self, operation: str) -> dict[tuple[str, str], TableEntity]:
        if self._rows is None:
            raise StoreUnavailableError(operation, "table does not exist")
        return self._rows

    async def ensure_ready(self) -> None:
        if self._rows is None:
            self._rows = {}

    async def retrieve(self, partition_key: str, row_key: str) -> TableEntity | None:
        entity = self._table("retrieve").get((partition_key, row_key))
        return replace(entity, properties=dict(entity.properties)) if entity else None

    async def insert(self, entity: TableEntity) -> TableEntity:
        rows = self._table("insert")
        key = (entity.partition_key, entity.row_key)
        if key in rows:
            raise RowConflictError("insert", f"row {key} already exists")
        stored = replace(entity, properties=dict(entity.properties), timestamp=self._stamper.stamp())
        rows[key] = stored
        insort(self._keys, key)
        return replace(stored, properties=dict(stored.properties))

    async def query_segment(
        self,
        table_filter: TableFilter | None = None,
        continuation_token: str | None = None,
    ) -> TableSegment:
        rows = self._table("query")
        start = 0
        if continuation_token is not None:
            start = bisect_right(self._keys, decode_token(continuation_token))

        page: list[TableEntity] = []
        for index in range(start, len(self._keys)):
            entity = rows[self._keys[index]]
            if table_filter is not None and not table_filter.matches(entity):
                continue
            if len(page) == self._page_size:
                last = page[-1]
                return TableSegment(page, encode_token(last.partition_key, last.row_key))
            page.append(replace(entity, properties=dict(entity.properties)))
        return TableSegment(page)

    async def delete(self, partition_key: str, row_key: str) -> None:
        rows = self._table("delete")
        key = (partition_key, row_key)
        if rows.pop(key, None) is None:
            raise RowNotFoundError("delete", f"row {key} does not exist")
        del self._keys[bisect_left(self._keys, key)]

    @property
    def row_count(self) -> int:
        return len(self._keys)
