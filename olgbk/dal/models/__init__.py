"""
Pydantic models for the olgbk data access layer.

These models represent the MongoDB document schemas used throughout the application.
They are organized by domain: logbooks and tags, properties, logs and search.
"""

from olgbk.dal.models.common import State, UtcDatetime
from olgbk.dal.models.logbooks import NamedEntity, Logbook, Tag
from olgbk.dal.models.properties import Attribute, Property
from olgbk.dal.models.logs import (
    Event,
    Attachment,
    Log,
    LogBuilder,
    SearchResult,
)
from olgbk.dal.models.search import (
    SearchField,
    PropertyPath,
    SearchParameters,
    SearchQuery,
)

__all__ = [
    # Common
    "State",
    "UtcDatetime",
    # Logbooks and tags
    "NamedEntity",
    "Logbook",
    "Tag",
    # Properties
    "Attribute",
    "Property",
    # Logs
    "Event",
    "Attachment",
    "Log",
    "LogBuilder",
    "SearchResult",
    # Search
    "SearchField",
    "PropertyPath",
    "SearchParameters",
    "SearchQuery",
]
