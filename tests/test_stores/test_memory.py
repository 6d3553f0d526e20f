"""Tests for InMemoryTableStore."""

import pytest

from anchor_registry.exceptions import RowConflictError, RowNotFoundError, StoreUnavailableError
from anchor_registry.stores import InMemoryTableStore, TableEntity, TableFilter


def _entity(pk, rk, **props):
    return TableEntity(partition_key=pk, row_key=rk, properties=props)


@pytest.fixture
async def store(clock):
    s = InMemoryTableStore(page_size=2, clock=clock)
    await s.ensure_ready()
    return s


async def test_operations_before_ready_raise():
    s = InMemoryTableStore()
    with pytest.raises(StoreUnavailableError):
        await s.retrieve("0", "0")
    with pytest.raises(StoreUnavailableError):
        await s.insert(_entity("0", "0", AnchorKey="a"))


async def test_ensure_ready_is_idempotent(store):
    await store.insert(_entity("0", "0", AnchorKey="a"))
    await store.ensure_ready()
    assert store.row_count == 1


async def test_retrieve_nonexistent(store):
    assert await store.retrieve("0", "0") is None


async def test_insert_and_retrieve(store, clock):
    inserted = await store.insert(_entity("0", "1", AnchorKey="a"))
    assert inserted.timestamp == clock.now()

    fetched = await store.retrieve("0", "1")
    assert fetched.properties == {"AnchorKey": "a"}
    assert fetched.timestamp == inserted.timestamp


async def test_insert_conflict(store):
    await store.insert(_entity("0", "1", AnchorKey="a"))
    with pytest.raises(RowConflictError):
        await store.insert(_entity("0", "1", AnchorKey="b"))
    assert (await store.retrieve("0", "1")).properties["AnchorKey"] == "a"


async def test_same_row_key_in_other_partition(store):
    await store.insert(_entity("0", "1", AnchorKey="a"))
    await store.insert(_entity("1", "1", AnchorKey="b"))
    assert (await store.retrieve("1", "1")).properties["AnchorKey"] == "b"


async def test_write_timestamps_strictly_increase(store):
    # the fake clock never moves on its own
    first = await store.insert(_entity("0", "0", AnchorKey="a"))
    second = await store.insert(_entity("0", "1", AnchorKey="b"))
    assert second.timestamp > first.timestamp


async def test_returned_entities_are_copies(store):
    await store.insert(_entity("0", "0", AnchorKey="a"))
    fetched = await store.retrieve("0", "0")
    fetched.properties["AnchorKey"] = "mutated"
    assert (await store.retrieve("0", "0")).properties["AnchorKey"] == "a"


async def test_query_segment_paginates(store):
    for rk in ["0", "1", "2", "3", "4"]:
        await store.insert(_entity("0", rk, AnchorKey=f"k{rk}"))

    first = await store.query_segment()
    assert [e.row_key for e in first.entities] == ["0", "1"]
    assert first.continuation_token is not None

    second = await store.query_segment(continuation_token=first.continuation_token)
    assert [e.row_key for e in second.entities] == ["2", "3"]

    third = await store.query_segment(continuation_token=second.continuation_token)
    assert [e.row_key for e in third.entities] == ["4"]
    assert third.continuation_token is None


async def test_exact_page_has_no_token(store):
    await store.insert(_entity("0", "0", AnchorKey="a"))
    await store.insert(_entity("0", "1", AnchorKey="b"))
    segment = await store.query_segment()
    assert len(segment.entities) == 2
    assert segment.continuation_token is None


async def test_scan_orders_by_partition_then_row(store):
    await store.insert(_entity("1", "500", AnchorKey="c"))
    await store.insert(_entity("0", "2", AnchorKey="b"))
    await store.insert(_entity("0", "10", AnchorKey="a"))
    rows = [(e.partition_key, e.row_key) for e in await store.scan_all()]
    assert rows == [("0", "10"), ("0", "2"), ("1", "500")]


async def test_scan_filter_equal(store):
    await store.insert(_entity("0", "0", AnchorKey="a"))
    await store.insert(_entity("0", "1", AnchorKey="b"))
    await store.insert(_entity("0", "2", AnchorKey="a"))
    await store.insert(_entity("0", "3", AnchorKey="a"))
    rows = await store.scan_all(TableFilter.equal("AnchorKey", "a"))
    assert [e.row_key for e in rows] == ["0", "2", "3"]


async def test_scan_filter_not_equal_skips_missing_column(store):
    await store.insert(_entity("0", "0", AnchorKey="0"))
    await store.insert(_entity("0", "1", AnchorKey="b"))
    await store.insert(_entity("0", "2", Other="x"))
    rows = await store.scan_all(TableFilter.not_equal("AnchorKey", "0"))
    assert [e.row_key for e in rows] == ["1"]


async def test_scan_empty(store):
    assert await store.scan_all() == []


async def test_delete(store):
    await store.insert(_entity("0", "0", AnchorKey="a"))
    await store.delete("0", "0")
    assert await store.retrieve("0", "0") is None


async def test_delete_nonexistent(store):
    with pytest.raises(RowNotFoundError):
        await store.delete("0", "nope")


async def test_malformed_token(store):
    with pytest.raises(ValueError):
        await store.query_segment(continuation_token="not-json")


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        InMemoryTableStore(page_size=0)


async def test_scan_resumes_after_token_row_is_deleted(store):
    for rk in ["1", "2", "3", "4"]:
        await store.insert(_entity("0", rk, AnchorKey=rk))
    first = await store.query_segment()
    assert [e.row_key for e in first.entities] == ["1", "2"]

    await store.delete("0", "2")
    second = await store.query_segment(continuation_token=first.continuation_token)
    assert [e.row_key for e in second.entities] == ["3", "4"]


async def test_scan_sees_rows_inserted_between_pages(store):
    for rk in ["1", "3", "5"]:
        await store.insert(_entity("0", rk, AnchorKey=rk))
    first = await store.query_segment()
    await store.insert(_entity("0", "4", AnchorKey="4"))
    await store.insert(_entity("0", "0", AnchorKey="0"))

    second = await store.query_segment(continuation_token=first.continuation_token)
    assert [e.row_key for e in second.entities] == ["4", "5"]
    assert [e.row_key for e in await store.scan_all()] == ["0", "1", "3", "4", "5"]


async def test_row_count_tracks_inserts_and_deletes(store):
    assert store.row_count == 0
    await store.insert(_entity("0", "1", AnchorKey="a"))
    await store.insert(_entity("1", "1", AnchorKey="b"))
    await store.delete("0", "1")
    assert store.row_count == 1
    assert [e.partition_key for e in await store.scan_all()] == ["1"]
