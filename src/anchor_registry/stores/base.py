"""TableStore protocol — a partitioned key-value table with segmented scans."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

DEFAULT_PAGE_SIZE = 1000

_TABLE_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9]{2,62}$")


def validate_table_name(name: str) -> str:
    """Return *name* if it is a valid table name, else raise ``ValueError``.

    Table names are alphanumeric, start with a letter and are 3-63
    characters long.
    """
    if not _TABLE_NAME.match(name):
        raise ValueError(f"Invalid table name {name!r}")
    return name


@dataclass
class TableEntity:
    """A single row.

    Attributes:
        partition_key: Distribution key; rows sharing it live together.
        row_key:       Unique identity within the partition.
        properties:    String-valued columns.
        timestamp:     Write time assigned by the store on insert.
    """

    partition_key: str
    row_key: str
    properties: dict[str, str] = field(default_factory=dict)
    timestamp: datetime | None = None


@dataclass(frozen=True)
class TableFilter:
    """Single-column comparison applied during a scan.

    An entity that lacks *column* matches neither ``eq`` nor ``ne``.
    """

    column: str
    op: Literal["eq", "ne"]
    value: str

    @staticmethod
    def equal(column: str, value: str) -> TableFilter:
        return TableFilter(column, "eq", value)

    @staticmethod
    def not_equal(column: str, value: str) -> TableFilter:
        return TableFilter(column, "ne", value)

    def matches(self, entity: TableEntity) -> bool:
        actual = entity.properties.get(self.column)
        if actual is None:
            return False
        if self.op == "eq":
            return actual == self.value
        return actual != self.value


@dataclass
class TableSegment:
    """One page of a scan.  ``continuation_token`` is ``None`` on the last page."""

    entities: list[TableEntity]
    continuation_token: str | None = None


class TableStore(ABC):
    """Abstract base for all table backends.

    Rows are addressed by ``(partition_key, row_key)``.  Single-row inserts
    are atomic; there are no cross-row transactions.  Scans are returned in
    ``(partition_key, row_key)`` order, one segment at a time.
    """

    @abstractmethod
    async def ensure_ready(self) -> None:
        """Create the backing table if needed.  Idempotent."""
        ...

    @abstractmethod
    async def retrieve(self, partition_key: str, row_key: str) -> TableEntity | None:
        """Return the row, or ``None`` if not found."""
        ...

    @abstractmethod
    async def insert(self, entity: TableEntity) -> TableEntity:
        """Insert a new row and return it with its write timestamp.

        Raises:
            RowConflictError: If the row already exists.
        """
        ...

    @abstractmethod
    async def query_segment(
        self,
        table_filter: TableFilter | None = None,
        continuation_token: str | None = None,
    ) -> TableSegment:
        """Return one page of rows matching *table_filter*."""
        ...

    @abstractmethod
    async def delete(self, partition_key: str, row_key: str) -> None:
        """Delete a row.

        Raises:
            RowNotFoundError: If the row does not exist.
        """
        ...

    async def scan(self, table_filter: TableFilter | None = None) -> AsyncIterator[TableEntity]:
        """Yield every matching row, following continuation tokens to the end."""
        token: str | None = None
        while True:
            segment = await self.query_segment(table_filter, token)
            for entity in segment.entities:
                yield entity
            token = segment.continuation_token
            if token is None:
                return

    async def scan_all(self, table_filter: TableFilter | None = None) -> list[TableEntity]:
        """Drain :meth:`scan` into a list."""
        return [entity async for entity in self.scan(table_filter)]
