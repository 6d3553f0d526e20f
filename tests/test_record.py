"""Tests for AnchorRecord and the partitioning scheme."""

import pytest

from anchor_registry.record import AnchorRecord, parse_row_key, storage_key
from anchor_registry.stores import TableEntity


def test_storage_key_buckets_by_partition_size():
    assert storage_key(0) == ("0", "0")
    assert storage_key(499) == ("0", "499")
    assert storage_key(500) == ("1", "500")
    assert storage_key(12, partition_size=5) == ("2", "12")


def test_storage_key_rejects_bad_partition_size():
    with pytest.raises(ValueError):
        storage_key(1, partition_size=0)


def test_parse_row_key():
    assert parse_row_key("42") == 42
    assert parse_row_key("-1") is None
    assert parse_row_key("abc") is None
    assert parse_row_key("") is None


def test_to_entity_plain():
    entity = AnchorRecord(7, "key").to_entity()
    assert (entity.partition_key, entity.row_key) == ("0", "7")
    assert entity.properties == {"AnchorKey": "key"}


def test_to_entity_with_object_name_uses_same_partitioning():
    entity = AnchorRecord(501, "key", object_name="chair").to_entity()
    assert (entity.partition_key, entity.row_key) == ("1", "501")
    assert entity.properties == {"AnchorKey": "key", "Authorable": "chair"}


def test_from_entity():
    entity = TableEntity("0", "3", {"AnchorKey": "k", "Authorable": "lamp"})
    record = AnchorRecord.from_entity(entity)
    assert record == AnchorRecord(3, "k", object_name="lamp")


def test_from_entity_rejects_foreign_row_key():
    with pytest.raises(ValueError):
        AnchorRecord.from_entity(TableEntity("0", "latest", {"AnchorKey": "k"}))


def test_record_is_immutable():
    record = AnchorRecord(1, "k")
    with pytest.raises(AttributeError):
        record.anchor_key = "other"  # type: ignore[misc]
