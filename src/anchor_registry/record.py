"""AnchorRecord — the unit of storage, and the partitioning scheme behind it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from anchor_registry.stores.base import TableEntity

DEFAULT_PARTITION_SIZE = 500

ANCHOR_KEY_COLUMN = "AnchorKey"
OBJECT_NAME_COLUMN = "Authorable"


def storage_key(anchor_number: int, partition_size: int = DEFAULT_PARTITION_SIZE) -> tuple[str, str]:
    """Return the ``(partition_key, row_key)`` pair for *anchor_number*.

    Anchor numbers are bucketed into partitions of *partition_size*
    consecutive numbers; the row key is the decimal number itself.
    """
    if partition_size <= 0:
        raise ValueError(f"partition_size must be positive, got {partition_size}")
    return str(anchor_number // partition_size), str(anchor_number)


def parse_row_key(row_key: str) -> int | None:
    """Return the anchor number encoded in *row_key*, or ``None`` if it is not one."""
    if not row_key.isdecimal():
        return None
    return int(row_key)


@dataclass(frozen=True)
class AnchorRecord:
    """Immutable anchor number to anchor key mapping.

    Attributes:
        anchor_number: Dense integer handle assigned by the cache.
        anchor_key:    Opaque payload supplied by the client.
        object_name:   Optional object name for registration inserts.
        timestamp:     Write time assigned by the store (``None`` until stored).
    """

    anchor_number: int
    anchor_key: str
    object_name: str | None = None
    timestamp: datetime | None = None

    def to_entity(self, partition_size: int = DEFAULT_PARTITION_SIZE) -> TableEntity:
        partition_key, row_key = storage_key(self.anchor_number, partition_size)
        properties = {ANCHOR_KEY_COLUMN: self.anchor_key}
        if self.object_name is not None:
            properties[OBJECT_NAME_COLUMN] = self.object_name
        return TableEntity(
            partition_key=partition_key,
            row_key=row_key,
            properties=properties,
        )

    @staticmethod
    def from_entity(entity: TableEntity) -> AnchorRecord:
        anchor_number = parse_row_key(entity.row_key)
        if anchor_number is None:
            raise ValueError(f"Row key {entity.row_key!r} is not an anchor number")
        return AnchorRecord(
            anchor_number=anchor_number,
            anchor_key=entity.properties.get(ANCHOR_KEY_COLUMN, ""),
            object_name=entity.properties.get(OBJECT_NAME_COLUMN),
            timestamp=entity.timestamp,
        )
