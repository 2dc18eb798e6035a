"""Tests for reconciling the outcome of batched writes."""

import logging

import pytest
from pymongo.errors import AutoReconnect, BulkWriteError

from olgbk.dal.bulk import partition_bulk_errors, reconcile_bulk_write
from olgbk.dal.exceptions import PersistenceFailure


class Result:
    def __init__(self, acknowledged=True):
        self.acknowledged = acknowledged


def identity(item):
    return item["name"]


ITEMS = [{"name": "a"}, {"name": "b"}, {"name": "c"}]


def test_success_echoes_the_items():
    assert reconcile_bulk_write(ITEMS, identity, lambda: Result()) == ITEMS


def test_empty_batch_is_not_written():
    def write():
        raise AssertionError("should not be called")
    assert reconcile_bulk_write([], identity, write) == []


def test_write_errors_are_mapped_to_items(caplog):
    def write():
        raise BulkWriteError({"writeErrors": [
            {"index": 0, "code": 11000, "errmsg": "duplicate"},
            {"index": 2, "code": 121, "errmsg": "validation failed"}]})
    with caplog.at_level(logging.ERROR):
        with pytest.raises(PersistenceFailure) as excinfo:
            reconcile_bulk_write(ITEMS, identity, write, kind="tag")
    assert excinfo.value.failures == [("a", "duplicate"), ("c", "validation failed")]
    assert "b" not in [key for key, _ in excinfo.value.failures]
    assert len([r for r in caplog.records if r.levelno == logging.ERROR]) == 2


def test_unacknowledged_write_fails_every_item():
    with pytest.raises(PersistenceFailure) as excinfo:
        reconcile_bulk_write(ITEMS, identity, lambda: Result(acknowledged=False))
    assert [key for key, _ in excinfo.value.failures] == ["a", "b", "c"]


def test_driver_error_fails_every_item():
    def write():
        raise AutoReconnect("connection reset")
    with pytest.raises(PersistenceFailure) as excinfo:
        reconcile_bulk_write(ITEMS, identity, write)
    assert [key for key, _ in excinfo.value.failures] == ["a", "b", "c"]
    assert isinstance(excinfo.value.__cause__, AutoReconnect)


def test_rejected_items_skip_the_write():
    calls = []
    with pytest.raises(PersistenceFailure) as excinfo:
        reconcile_bulk_write(ITEMS, identity, lambda: calls.append(1), rejected=[("b", "bad reference")])
    assert calls == []
    assert excinfo.value.failures == [("b", "bad reference")]


def test_write_concern_errors_apply_to_the_batch():
    details = {"writeErrors": [], "writeConcernErrors": [{"code": 64, "errmsg": "waiting for replication timed out"}]}
    assert partition_bulk_errors(ITEMS, identity, details) == [("batch", "waiting for replication timed out")]


def test_out_of_range_index():
    details = {"writeErrors": [{"index": 7, "code": 2}]}
    assert partition_bulk_errors(ITEMS, identity, details) == [("item 7", "Unknown error code 2")]
