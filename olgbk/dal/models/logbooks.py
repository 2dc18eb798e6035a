"""
Models for logbooks and tags.

Both are stored one document per name (the name is the `_id`) in their own
collections. Deleting one flips `state` to Inactive; the name stays claimed.
"""

from pydantic import Field

from olgbk.dal.models.common import MongoBaseModel, State


class NamedEntity(MongoBaseModel):
    """
    A record identified by a unique, case-sensitive name.
    """

    name: str = Field(min_length=1)
    owner: str | None = None
    state: State = State.Active

    @property
    def is_active(self) -> bool:
        return self.state == State.Active


class Logbook(NamedEntity):
    """A named category that log entries are filed under."""


class Tag(NamedEntity):
    """A named label attached to log entries."""
