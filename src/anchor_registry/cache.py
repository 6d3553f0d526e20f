"""AnchorKeyCache — allocates anchor numbers and answers queries over the anchor table."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from anchor_registry._internal.once import Once
from anchor_registry.exceptions import (
    AllocationConflictError,
    AnchorNotFoundError,
    AnchorSpaceExhaustedError,
    InvalidAnchorKeyError,
    RowConflictError,
    StoreError,
)
from anchor_registry.record import (
    ANCHOR_KEY_COLUMN,
    DEFAULT_PARTITION_SIZE,
    AnchorRecord,
    parse_row_key,
    storage_key,
)
from anchor_registry.result import DeleteResult
from anchor_registry.stores.base import TableFilter
from anchor_registry.stores.memory import InMemoryTableStore

if TYPE_CHECKING:
    from anchor_registry.stores.base import TableEntity, TableStore

logger = logging.getLogger(__name__)

MAX_ANCHOR_NUMBER = 2**63 - 1

# Rows whose key is this placeholder survive delete_all_anchor_keys.
RESERVED_ANCHOR_KEY = "0"


class AnchorCounter:
    """The last anchor number handed out, or unset until derived from storage."""

    def __init__(self) -> None:
        self.last: int | None = None

    @property
    def is_set(self) -> bool:
        return self.last is not None

    def seed(self, last: int) -> None:
        self.last = last

    def reset(self) -> None:
        self.last = None

    def advance(self) -> int:
        if self.last is None:
            raise RuntimeError("counter must be seeded before it can advance")
        self.last += 1
        return self.last


class AnchorKeyCache:
    """Maps dense anchor numbers to opaque anchor keys on top of a :class:`TableStore`.

    The only state kept in memory is the allocation counter.  It is derived
    lazily from the largest row key in storage on the first allocation and
    advanced in memory afterwards.  Allocation is serialized by a single
    lock covering read, increment and insert, so concurrent callers in one
    process always receive distinct, consecutive numbers.

    Parameters:
        store:          Table backend.  Defaults to :class:`InMemoryTableStore`
                        when omitted.
        partition_size: Number of consecutive anchor numbers per partition.
    """

    def __init__(
        self,
        store: TableStore | None = None,
        *,
        partition_size: int = DEFAULT_PARTITION_SIZE,
    ) -> None:
        if partition_size <= 0:
            raise ValueError(f"partition_size must be positive, got {partition_size}")
        self._store: TableStore = store if store is not None else InMemoryTableStore()
        self._partition_size = partition_size
        self._counter = AnchorCounter()
        self._allocation_lock = asyncio.Lock()
        self._initialized = Once(self._initialize)

    @property
    def store(self) -> TableStore:
        return self._store

    @property
    def partition_size(self) -> int:
        return self._partition_size

    @property
    def last_anchor_number(self) -> int | None:
        """Last number handed out by this instance, ``None`` until known."""
        return self._counter.last

    # ── lifecycle ────────────────────────────────────────────

    async def ensure_initialized(self) -> None:
        """Make sure the backing table exists.  Safe to call concurrently."""
        await self._initialized.wait()

    async def _initialize(self) -> None:
        logger.info("Preparing anchor table")
        try:
            await self._store.ensure_ready()
        except Exception:
            logger.exception("Anchor table could not be prepared")
            raise
        logger.info("Anchor table ready")

    async def close(self) -> None:
        if hasattr(self._store, "close"):
            await self._store.close()

    # ── allocation ───────────────────────────────────────────

    async def allocate(self, anchor_key: str, object_name: str | None = None) -> int:
        """Store *anchor_key* under the next free anchor number and return that number.

        Raises:
            InvalidAnchorKeyError:   If *anchor_key* is empty or blank.
            AllocationConflictError: If the row for the new number already
                                     exists (another writer got there first).
            AnchorSpaceExhaustedError: If storage already holds the largest
                                     representable anchor number.
        """
        if not anchor_key or not anchor_key.strip():
            raise InvalidAnchorKeyError("Anchor key must not be empty")

        await self.ensure_initialized()

        async with self._allocation_lock:
            if self._counter.last == MAX_ANCHOR_NUMBER:
                logger.warning("Anchor counter reached %d, re-deriving from storage", MAX_ANCHOR_NUMBER)
                self._counter.reset()

            if not self._counter.is_set:
                last = await self._derive_last_anchor_number()
                if last >= MAX_ANCHOR_NUMBER:
                    raise AnchorSpaceExhaustedError(
                        f"Anchor number {MAX_ANCHOR_NUMBER} is already in use"
                    )
                self._counter.seed(last)
                logger.info("Anchor counter initialized at %d", last)

            anchor_number = self._counter.advance()
            record = AnchorRecord(anchor_number, anchor_key, object_name)
            try:
                await self._store.insert(record.to_entity(self._partition_size))
            except RowConflictError as exc:
                self._counter.reset()
                logger.error(
                    "Anchor number %d already exists; another writer is allocating "
                    "against the same table",
                    anchor_number,
                )
                raise AllocationConflictError(anchor_number) from exc
            except Exception:
                self._counter.reset()
                raise

        logger.debug("Allocated anchor number %d", anchor_number)
        return anchor_number

    async def _derive_last_anchor_number(self) -> int:
        """Return the largest anchor number in storage, or ``-1`` for an empty table."""
        last = -1
        async for entity in self._store.scan():
            number = parse_row_key(entity.row_key)
            if number is None:
                logger.warning("Ignoring row with non-numeric row key %r", entity.row_key)
                continue
            last = max(last, number)
        return last

    # ── reads ────────────────────────────────────────────────

    async def contains(self, anchor_number: int) -> bool:
        await self.ensure_initialized()
        return await self._retrieve(anchor_number) is not None

    async def get_anchor_key(self, anchor_number: int) -> str:
        """Return the key stored under *anchor_number*.

        Raises:
            AnchorNotFoundError: If no record exists for the number.
        """
        await self.ensure_initialized()
        entity = await self._retrieve(anchor_number)
        if entity is None:
            raise AnchorNotFoundError(anchor_number)
        return AnchorRecord.from_entity(entity).anchor_key

    async def _retrieve(self, anchor_number: int) -> TableEntity | None:
        if anchor_number < 0:
            return None
        partition_key, row_key = storage_key(anchor_number, self._partition_size)
        return await self._store.retrieve(partition_key, row_key)

    async def get_last_record(self) -> AnchorRecord | None:
        """Return the most recently written record, or ``None`` if the table is empty.

        There is no recency index: this scans the whole table.
        """
        await self.ensure_initialized()
        latest: TableEntity | None = None
        async for entity in self._store.scan():
            if parse_row_key(entity.row_key) is None:
                logger.warning("Ignoring row with non-numeric row key %r", entity.row_key)
                continue
            if latest is None or (
                entity.timestamp is not None
                and (latest.timestamp is None or entity.timestamp > latest.timestamp)
            ):
                latest = entity
        if latest is None:
            return None
        return AnchorRecord.from_entity(latest)

    async def get_last_anchor_key(self) -> str | None:
        record = await self.get_last_record()
        return record.anchor_key if record else None

    async def get_all_anchor_keys(self) -> list[str]:
        """Return every anchor key in scan order."""
        await self.ensure_initialized()
        return [
            entity.properties.get(ANCHOR_KEY_COLUMN, "")
            async for entity in self._store.scan()
        ]

    async def get_all_anchor_keys_as_string(self) -> str:
        """Return every anchor key comma-joined, behind a leading ``"0"`` token.

        Existing clients split on commas and skip the first element, so the
        placeholder token is always present, even for an empty table.
        """
        keys = await self.get_all_anchor_keys()
        return ",".join([RESERVED_ANCHOR_KEY, *keys])

    # ── deletion ─────────────────────────────────────────────

    async def delete_anchor_key(self, anchor_key: str) -> bool:
        """Delete every record whose key equals *anchor_key*.

        Per-row failures do not stop the pass.  Returns ``True`` if at least
        one record was deleted.
        """
        await self.ensure_initialized()
        matches = await self._store.scan_all(TableFilter.equal(ANCHOR_KEY_COLUMN, anchor_key))
        result = await self._delete_entities(matches, stop_on_failure=False)
        if result.failures:
            logger.warning(
                "Partial delete for anchor key: %d of %d rows failed: %s",
                len(result.failures),
                result.matched,
                result.failures,
            )
        return result.any_deleted

    async def delete_all_anchor_keys(self) -> bool:
        """Delete every record except the reserved placeholder.

        Stops at the first row that cannot be deleted and returns ``False``,
        leaving the remaining rows in place.  Returns ``False`` as well when
        there is nothing to delete.
        """
        await self.ensure_initialized()
        matches = await self._store.scan_all(
            TableFilter.not_equal(ANCHOR_KEY_COLUMN, RESERVED_ANCHOR_KEY)
        )
        result = await self._delete_entities(matches, stop_on_failure=True)
        if result.aborted:
            logger.warning(
                "Delete-all aborted after %d of %d rows: %s",
                len(result.deleted),
                result.matched,
                result.failures,
            )
        return result.complete

    async def _delete_entities(
        self,
        entities: list[TableEntity],
        *,
        stop_on_failure: bool,
    ) -> DeleteResult:
        deleted: list[str] = []
        failures: list[tuple[str, str]] = []
        for entity in entities:
            try:
                await self._store.delete(entity.partition_key, entity.row_key)
            except StoreError as exc:
                failures.append((entity.row_key, str(exc)))
                if stop_on_failure:
                    return DeleteResult(
                        matched=len(entities),
                        deleted=tuple(deleted),
                        failures=tuple(failures),
                        aborted=True,
                    )
                continue
            deleted.append(entity.row_key)
        return DeleteResult(
            matched=len(entities),
            deleted=tuple(deleted),
            failures=tuple(failures),
        )
