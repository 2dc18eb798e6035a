"""Tests for the time helpers and the JSON encoder."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from olgbk.dal.models import Logbook
from olgbk.dal.utils import JSONEncoder, format_milli, parse_milli, truncate_to_millis


def test_truncate_to_millis():
    assert truncate_to_millis(datetime(2020, 10, 23, 14, 5, 1, 123999)) == datetime(2020, 10, 23, 14, 5, 1, 123000)


def test_aware_datetimes_become_naive_utc():
    pacific = timezone(timedelta(hours=-7))
    assert truncate_to_millis(datetime(2020, 10, 23, 7, 5, 1, tzinfo=pacific)) == datetime(2020, 10, 23, 14, 5, 1)


def test_format_and_parse():
    assert format_milli(datetime(2020, 10, 23, 14, 5, 1, 123456)) == "2020-10-23 14:05:01.123"
    assert parse_milli("2020-10-23 14:05:01.123") == datetime(2020, 10, 23, 14, 5, 1, 123000)
    assert parse_milli(" 2020-10-23 14:05:01.000 ") == datetime(2020, 10, 23, 14, 5, 1)


@pytest.mark.parametrize("timestr", ["2020-10-23", "2020-10-23T14:05:01.123", "yesterday"])
def test_parse_rejects_other_formats(timestr):
    with pytest.raises(ValueError):
        parse_milli(timestr)


def test_json_encoder():
    oid = ObjectId()
    encoded = json.loads(json.dumps({
        "id": oid,
        "when": datetime(2020, 10, 23, 14, 5, 1),
        "logbook": Logbook(name="Operations"),
    }, cls=JSONEncoder))
    assert encoded["id"] == str(oid)
    assert encoded["when"] == "2020-10-23T14:05:01"
    assert encoded["logbook"] == {"name": "Operations", "owner": None, "state": "Active"}
