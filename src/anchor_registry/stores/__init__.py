"""Table backends for anchor record persistence."""

from anchor_registry.stores.base import TableEntity, TableFilter, TableSegment, TableStore
from anchor_registry.stores.memory import InMemoryTableStore
from anchor_registry.stores.sqlite import SQLiteTableStore

__all__ = [
    "InMemoryTableStore",
    "SQLiteTableStore",
    "TableEntity",
    "TableFilter",
    "TableSegment",
    "TableStore",
]
