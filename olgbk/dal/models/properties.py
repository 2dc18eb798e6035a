"""
Models for properties and their attributes.

The canonical property lives in the `properties` collection and acts as a
template of expected attribute names. A log entry embeds its own copy with
the attribute values filled in for that entry.
"""

from pydantic import Field, field_validator

from olgbk.dal.models.common import MongoBaseModel
from olgbk.dal.models.logbooks import NamedEntity


class Attribute(MongoBaseModel):
    name: str = Field(min_length=1)
    value: str = ""

    def same_key(self, other: "Attribute") -> bool:
        """Schema-key comparison; values are ignored."""
        return self.name == other.name


class Property(NamedEntity):
    """
    A named set of attributes.

    Attribute names are unique within a property. Attributes are kept sorted
    by name so that two properties with the same attributes compare equal
    regardless of the order they were specified in.
    """

    attributes: list[Attribute] = Field(default_factory=list)

    @field_validator("attributes")
    @classmethod
    def _unique_sorted_attributes(cls, attributes: list[Attribute]) -> list[Attribute]:
        names = [a.name for a in attributes]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError("Duplicate attribute names %s" % duplicates)
        return sorted(attributes, key=lambda a: a.name)

    def attribute(self, name: str) -> Attribute | None:
        return next((a for a in self.attributes if a.name == name), None)
