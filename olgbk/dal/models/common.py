"""
Common types and base model configuration shared across all models.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, AfterValidator

from olgbk.dal.utils import truncate_to_millis


UtcDatetime = Annotated[datetime, AfterValidator(truncate_to_millis)]
"""A naive UTC datetime with millisecond precision; aware datetimes are converted to UTC."""


class State(str, Enum):
    """Soft-delete state carried by every identity-keyed record."""

    Active = "Active"
    Inactive = "Inactive"


class MongoBaseModel(BaseModel):
    """Base model for all MongoDB document models."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        frozen=True,
    )
