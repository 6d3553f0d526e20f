"""Custom exceptions for the anchor_registry package."""

from __future__ import annotations


class AnchorRegistryError(Exception):
    """Base exception for all anchor registry errors."""


class AnchorNotFoundError(AnchorRegistryError):
    """Raised when no record exists for an anchor number."""

    def __init__(self, anchor_number: int) -> None:
        self.anchor_number = anchor_number
        super().__init__(f"The anchor number {anchor_number} could not be found.")


class InvalidAnchorKeyError(AnchorRegistryError):
    """Raised when an anchor key is empty or blank."""


class AllocationConflictError(AnchorRegistryError):
    """Raised when the row for a freshly allocated anchor number already exists.

    This means another writer allocated the same number concurrently.  The
    allocator state has been reset and is re-derived from storage on the
    next allocation.
    """

    def __init__(self, anchor_number: int) -> None:
        self.anchor_number = anchor_number
        super().__init__(f"Anchor number {anchor_number} was already taken by another writer")


class AnchorSpaceExhaustedError(AnchorRegistryError):
    """Raised when storage already holds the largest representable anchor number."""


class ConfigError(AnchorRegistryError):
    """Raised when the service is misconfigured."""


class StoreError(AnchorRegistryError):
    """Raised when a store operation fails."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class StoreUnavailableError(StoreError):
    """Raised when the backing table cannot be reached or created."""


class RowConflictError(StoreError):
    """Raised when inserting a row whose (partition key, row key) already exists."""


class RowNotFoundError(StoreError):
    """Raised when deleting a row that does not exist."""
