"""Tests for the pydantic models and the log builder."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from olgbk.dal.models import Attachment, Attribute, Event, Log, LogBuilder, Logbook, Property, State, Tag


class TestNamedEntities:
    def test_defaults_to_active(self):
        tag = Tag(name="Fault")
        assert tag.state == State.Active
        assert tag.state == "Active"
        assert tag.is_active

    def test_inactive(self):
        assert not Logbook(name="Operations", state=State.Inactive).is_active

    def test_name_is_required(self):
        with pytest.raises(ValidationError):
            Logbook(name="")

    def test_frozen(self):
        with pytest.raises(ValidationError):
            Tag(name="Fault").name = "Beam"


class TestProperties:
    def test_attributes_are_sorted(self):
        prop = Property(name="Shift", attributes=[Attribute(name="number"), Attribute(name="leader")])
        assert prop == Property(name="Shift", attributes=[Attribute(name="leader"), Attribute(name="number")])

    def test_duplicate_attribute_names(self):
        with pytest.raises(ValidationError, match="leader"):
            Property(name="Shift", attributes=[Attribute(name="leader", value="kim"), Attribute(name="leader", value="lee")])

    def test_same_key_ignores_values(self):
        assert Attribute(name="leader", value="kim").same_key(Attribute(name="leader", value="lee"))
        assert not Attribute(name="leader").same_key(Attribute(name="number"))

    def test_attribute_lookup(self):
        prop = Property(name="Shift", attributes=[Attribute(name="leader", value="kim")])
        assert prop.attribute("leader").value == "kim"
        assert prop.attribute("number") is None


class TestLog:
    def test_id_alias(self):
        log = Log.model_validate({"_id": 42, "title": "from mongo"})
        assert log.id == 42
        assert log.model_dump(by_alias=True)["_id"] == 42

    def test_times_are_naive_utc_millis(self):
        pacific = timezone(timedelta(hours=-7))
        event = Event(name="trip", instant=datetime(2020, 10, 23, 7, 5, 1, 123456, tzinfo=pacific))
        assert event.instant == datetime(2020, 10, 23, 14, 5, 1, 123000)


class TestLogBuilder:
    def test_build(self):
        log = LogBuilder.create_log("Beam dump").owner("operator").title("Dump").level("Info") \
            .with_logbook(Logbook(name="Operations")).with_tag(Tag(name="Fault")) \
            .with_event(Event(name="dump", instant=datetime(2020, 10, 23))) \
            .with_attachment(Attachment(filename="screen.png")).build()
        assert log.description == "Beam dump"
        assert log.source == "Beam dump"
        assert log.owner == "operator"
        assert [x.name for x in log.logbooks] == ["Operations"]
        assert [x.name for x in log.tags] == ["Fault"]
        assert log.events[0].name == "dump"
        assert log.attachments[0].content_type == "application/octet-stream"
        assert log.id is None

    def test_references_are_deduplicated_by_name(self):
        log = LogBuilder.create_log().with_logbooks([Logbook(name="Operations"), Logbook(name="Controls")]) \
            .with_logbook(Logbook(name="Operations", owner="operator")) \
            .with_tags([Tag(name="Fault"), Tag(name="Fault")]) \
            .with_properties([Property(name="Shift"), Property(name="Shift", attributes=[Attribute(name="leader")])]) \
            .build()
        assert [(x.name, x.owner) for x in log.logbooks] == [("Operations", "operator"), ("Controls", None)]
        assert len(log.tags) == 1
        assert log.properties[0].attribute("leader") is not None

    def test_append_description(self):
        log = LogBuilder.create_log("first").append_description("second").source("raw").build()
        assert log.description == "first\nsecond"
        assert log.source == "raw"
