"""
Models for the search parameters accepted by the log search.

The incoming request is a multi-valued map of parameter name to a list of
strings. It is parsed into `SearchParameters` here so that malformed values
are rejected at the boundary rather than while the query is being built.
"""

from enum import Enum
from typing import Any

from pydantic import Field

from olgbk.dal.models.common import MongoBaseModel, UtcDatetime


class SearchField(str, Enum):
    """The recognized search parameter names."""

    TITLE = "title"
    LEVEL = "level"
    DESC = "desc"
    PHRASE = "phrase"
    OWNER = "owner"
    TAGS = "tags"
    LOGBOOKS = "logbooks"
    PROPERTIES = "properties"
    START = "start"
    END = "end"
    INCLUDE_EVENTS = "includeEvents"


class PropertyPath(MongoBaseModel):
    """
    A dotted `name[.attribute[.value]]` path into the properties of a log entry.
    None means the level is unconstrained; each segment may contain `*` wildcards.
    """

    name: str
    attribute: str | None = None
    value: str | None = None

    @classmethod
    def parse(cls, path: str) -> "PropertyPath":
        # The value is everything after the second dot; values like 1.5 are common.
        segments = [s if s else None for s in path.strip().split(".", 2)]
        segments.extend([None] * (3 - len(segments)))
        name, attribute, value = segments
        if not name:
            raise ValueError("Missing property name in %r" % path)
        return cls(name=name, attribute=attribute, value=value)


class SearchParameters(MongoBaseModel):
    """
    The typed form of a search request; one field per recognized parameter.
    Empty lists (and None for the times) mean the parameter was not specified.
    """

    title: list[str] = Field(default_factory=list)
    level: list[str] = Field(default_factory=list)
    desc: list[str] = Field(default_factory=list)
    phrase: list[str] = Field(default_factory=list)
    owner: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    logbooks: list[str] = Field(default_factory=list)
    properties: list[PropertyPath] = Field(default_factory=list)
    start: UtcDatetime | None = None
    end: UtcDatetime | None = None
    include_events: bool = Field(False, alias="includeEvents")


class SearchQuery(MongoBaseModel):
    """
    A compiled search; `filter` is a Mongo query document, `sort` a pymongo sort specification.
    """

    filter: dict[str, Any] = Field(default_factory=dict)
    sort: list[tuple[str, int]] = Field(default_factory=list)
    size: int
