'''
Various small utilties.
'''
import json
import math
import datetime

from bson import ObjectId
from pydantic import BaseModel

# Timestamps in search parameters; always UTC. For example, 2020-10-23 14:05:01.123
MILLI_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class JSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, ObjectId):
            return str(o)
        elif isinstance(o, BaseModel):
            return o.model_dump()
        elif isinstance(o, float) and not math.isfinite(o):
            return str(o)
        elif isinstance(o, datetime.datetime):
            # Use var d = new Date(str) in JS to deserialize
            return o.isoformat()
        return json.JSONEncoder.default(self, o)


def truncate_to_millis(dt):
    """
    Mongo stores datetimes with millisecond precision and without a timezone.
    Normalize to naive UTC with the microseconds rounded down to the millisecond so that what we write compares equal to what we read back.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


def utcnow_millis():
    return truncate_to_millis(datetime.datetime.now(datetime.timezone.utc))


def format_milli(dt):
    """
    Format a datetime in MILLI_FORMAT; strftime only knows about microseconds so we drop the last three digits.
    """
    return truncate_to_millis(dt).strftime(MILLI_FORMAT)[:-3]


def parse_milli(timestr):
    """
    Parse a MILLI_FORMAT timestamp into a naive UTC datetime.
    :raises ValueError if the string is not in MILLI_FORMAT
    """
    return truncate_to_millis(datetime.datetime.strptime(timestr.strip(), MILLI_FORMAT))
