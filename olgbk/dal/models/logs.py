"""
Models for log entries.

Log entries are stored in the `logs` collection keyed by a server assigned
integer id. Logbooks, tags and properties are embedded as full copies so that
a log entry can be returned without any further lookups.
"""

from pydantic import Field

from olgbk.dal.models.common import MongoBaseModel, State, UtcDatetime
from olgbk.dal.models.logbooks import Logbook, Tag
from olgbk.dal.models.properties import Property


class Event(MongoBaseModel):
    """
    A point in time that the log entry refers to; distinct from when the entry was created.
    """

    name: str
    instant: UtcDatetime


class Attachment(MongoBaseModel):
    """
    Metadata for an attachment on a log entry.

    The binary payload lives in the image store; `id` is the id the image
    store returned for it.
    """

    id: str | None = None
    filename: str
    content_type: str = "application/octet-stream"
    file_size: int | None = None


class Log(MongoBaseModel):
    """
    A single log entry document from the `logs` collection.

    `id`, `created_date` and `modified_date` are assigned by the repository.
    `source` is the body as submitted, before any server side processing.
    """

    id: int | None = Field(None, alias="_id")
    owner: str | None = None
    title: str = ""
    description: str = ""
    source: str = ""
    level: str = ""
    created_date: UtcDatetime | None = None
    modified_date: UtcDatetime | None = None
    state: State = State.Active
    logbooks: list[Logbook] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    properties: list[Property] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)


class LogBuilder:
    """
    Accumulates everything that goes into a log entry so that it can be written in one go.
    Logbooks, tags and properties are de-duplicated by name; the last one specified wins.

    >>> log = LogBuilder.create_log("Beam dump at 10:42").owner("operator").with_logbook(Logbook(name="Operations")).build()
    """

    def __init__(self, description=""):
        self._fields = {"description": description}
        self._source = None
        self._logbooks = {}
        self._tags = {}
        self._properties = {}
        self._events = []
        self._attachments = []

    @classmethod
    def create_log(cls, description=""):
        return cls(description)

    def owner(self, owner):
        self._fields["owner"] = owner
        return self

    def title(self, title):
        self._fields["title"] = title
        return self

    def level(self, level):
        self._fields["level"] = level
        return self

    def description(self, description):
        self._fields["description"] = description
        return self

    def append_description(self, description):
        current = self._fields.get("description", "")
        self._fields["description"] = current + "\n" + description if current else description
        return self

    def source(self, source):
        self._source = source
        return self

    def with_logbook(self, logbook):
        self._logbooks[logbook.name] = logbook
        return self

    def with_logbooks(self, logbooks):
        for logbook in logbooks:
            self.with_logbook(logbook)
        return self

    def with_tag(self, tag):
        self._tags[tag.name] = tag
        return self

    def with_tags(self, tags):
        for tag in tags:
            self.with_tag(tag)
        return self

    def with_property(self, prop):
        self._properties[prop.name] = prop
        return self

    def with_properties(self, props):
        for prop in props:
            self.with_property(prop)
        return self

    def with_event(self, event):
        self._events.append(event)
        return self

    def with_events(self, events):
        self._events.extend(events)
        return self

    def with_attachment(self, attachment):
        self._attachments.append(attachment)
        return self

    def build(self) -> Log:
        source = self._source if self._source is not None else self._fields.get("description", "")
        return Log(
            source=source,
            logbooks=list(self._logbooks.values()),
            tags=list(self._tags.values()),
            properties=list(self._properties.values()),
            events=list(self._events),
            attachments=list(self._attachments),
            **self._fields,
        )


class SearchResult(MongoBaseModel):
    """
    The logs matching a search (at most one page of them) and the total number of matches.
    """

    logs: list[Log] = Field(default_factory=list)
    total_count: int = 0
