'''
Reconciliation of batched writes.
A batch is issued as one call to Mongo for throughput, but callers see an all or nothing outcome;
either every item was written and they get the items back, or they get a PersistenceFailure naming every item that failed.
'''
import logging

from pymongo.errors import BulkWriteError, PyMongoError

from olgbk.dal.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


def partition_bulk_errors(items, identity, details):
    """
    Map the per item errors in the details of a BulkWriteError back to the items in the batch.
    :param items - The items in the order they were submitted.
    :param identity - Function that returns the identity (name/id) of an item.
    :param details - BulkWriteError.details
    :return: List of (identity, reason) tuples.
    """
    failures = []
    for write_error in details.get("writeErrors", []):
        index = write_error.get("index")
        key = identity(items[index]) if index is not None and 0 <= index < len(items) else "item %s" % index
        failures.append((key, write_error.get("errmsg", "Unknown error code %s" % write_error.get("code"))))
    for wc_error in details.get("writeConcernErrors", []):
        # Not attributable to a single item; the whole batch is in doubt.
        failures.append(("batch", wc_error.get("errmsg", "Write concern error")))
    return failures


def reconcile_bulk_write(items, identity, write, kind="entity", rejected=None):
    """
    Run the batched write and reconcile the per item outcomes.
    :param items - The items being written, in the order of the operations in the batch.
    :param identity - Function that returns the identity (name/id) of an item.
    :param write - Callable that issues the batched write and returns the pymongo BulkWriteResult.
    :param kind - The kind of entity; used in messages.
    :param rejected - (identity, reason) for items that failed validation before the write. If there are any, the write is not issued.
    :return: items, unchanged, if every item was written.
    :raises PersistenceFailure listing every failed item otherwise.
    """
    items = list(items)
    failures = list(rejected or [])
    if not items and not failures:
        # Mongo rejects an empty batch.
        return items
    if not failures:
        try:
            result = write()
            if result is not None and not result.acknowledged:
                failures = [(identity(item), "Write was not acknowledged") for item in items]
        except BulkWriteError as e:
            failures = partition_bulk_errors(items, identity, e.details)
        except PyMongoError as e:
            logger.exception("Failed to write batch of %s %s", len(items), kind)
            raise PersistenceFailure("Failed to save %s %s: %s" % (kind, [identity(x) for x in items], e),
                failures=[(identity(x), str(e)) for x in items]) from e

    if failures:
        for key, reason in failures:
            logger.error("Failed to save %s %s: %s", kind, key, reason)
        raise PersistenceFailure("Failed to save %s: %s" % (kind, "; ".join("%s - %s" % (k, r) for k, r in failures)), failures=failures)

    logger.debug("Saved batch of %s %s", len(items), kind)
    return items
