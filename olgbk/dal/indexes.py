'''
Indexes for the logbook collections.
'''
import logging

from pymongo import ASCENDING, DESCENDING

from olgbk import context
from olgbk.dal.log_repository import LOG_ID_COUNTER

logger = logging.getLogger(__name__)


def create_indexes(db):
    """
    Create the indexes used by find_all and the log search; and seed the log id counter.
    This is idempotent; existing indexes and the current counter value are left alone.
    """
    for collection_name in [context.LOGBOOK_COLLECTION, context.TAG_COLLECTION, context.PROPERTY_COLLECTION]:
        logger.info("Creating indexes for %s", collection_name)
        db[collection_name].create_index([("state", ASCENDING), ("name", ASCENDING)])

    logs = db[context.LOG_COLLECTION]
    logger.info("Creating indexes for %s", context.LOG_COLLECTION)
    logs.create_index([("created_date", DESCENDING)])
    logs.create_index([("state", ASCENDING), ("created_date", DESCENDING)])
    for field in ["owner", "logbooks.name", "tags.name", "properties.name", "events.instant"]:
        logs.create_index([(field, ASCENDING)])

    db[context.COUNTER_COLLECTION].update_one({"_id": LOG_ID_COUNTER}, {"$setOnInsert": {"seq": 0}}, upsert=True)
