"""anchor_registry — dense, shareable numbers for opaque anchor keys.

Clients submit an anchor key and get back a small integer they can hand to
someone else.  Numbers are allocated once, in order, and persisted in a
partitioned table so they survive restarts.
"""

from anchor_registry.cache import MAX_ANCHOR_NUMBER, AnchorKeyCache
from anchor_registry.exceptions import (
    AllocationConflictError,
    AnchorNotFoundError,
    AnchorRegistryError,
    AnchorSpaceExhaustedError,
    ConfigError,
    InvalidAnchorKeyError,
    RowConflictError,
    RowNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from anchor_registry.record import AnchorRecord
from anchor_registry.result import DeleteResult

__all__ = [
    "MAX_ANCHOR_NUMBER",
    "AllocationConflictError",
    "AnchorKeyCache",
    "AnchorNotFoundError",
    "AnchorRecord",
    "AnchorRegistryError",
    "AnchorSpaceExhaustedError",
    "ConfigError",
    "DeleteResult",
    "InvalidAnchorKeyError",
    "RowConflictError",
    "RowNotFoundError",
    "StoreError",
    "StoreUnavailableError",
]
