'''
Repositories for records identified by a key; logbooks, tags and properties are identified by name.

Deletes are logical; the record is loaded, its state flipped to Inactive and written back under the same key.
So a name, once used, stays claimed and log entries that embedded it keep a consistent history.
The read/flip/write in delete_by_id is not protected against a concurrent update of the same record; the later write wins.
'''
import logging

from pydantic import ValidationError
from pymongo import ASCENDING, ReplaceOne
from pymongo.errors import PyMongoError
from pymongo.write_concern import WriteConcern

from olgbk import context
from olgbk.dal.bulk import reconcile_bulk_write
from olgbk.dal.exceptions import NotFound, PersistenceFailure, LookupFailure, UnsupportedOperation, Forbidden
from olgbk.dal.models import State, Logbook, Tag, Property

logger = logging.getLogger(__name__)

# Used for writes where the caller needs to read its own write from any member of the replica set.
REFRESH_WRITE_CONCERN = WriteConcern(w="majority", j=True)


class StateAwareRepository(object):
    """
    Generic create/read/bulk/delete over one collection.
    Subclasses set `kind`, `model`, `collection_name` and `result_size` and can override the hooks
    `identity`, `normalize_key`, `prepare` and `deactivate`.
    """
    kind = "entity"
    model = None
    collection_name = None
    result_size = 10
    list_sort = [("name", ASCENDING)]

    def __init__(self, db=None, collection_name=None, result_size=None):
        self.db = db if db is not None else context.get_logbook_db()
        self.collection = self.db[collection_name or self.collection_name]
        if result_size is not None:
            self.result_size = result_size

    def identity(self, entity):
        return entity.name

    def normalize_key(self, key):
        """
        Convert an incoming key into what is stored in _id. Return None if no record can possibly have this key.
        """
        return key

    def prepare(self, entity):
        """
        Hook called before an entity is written; return the entity to write.
        """
        return entity

    def deactivate(self, entity):
        return entity.model_copy(update={"state": State.Inactive.value})

    def to_document(self, entity):
        doc = entity.model_dump(by_alias=True)
        doc["_id"] = self.identity(entity)
        return doc

    def from_document(self, doc):
        try:
            return self.model.model_validate(doc)
        except ValidationError as e:
            logger.exception("Cannot parse %s document %s", self.kind, doc.get("_id"))
            raise LookupFailure("Malformed %s document %s" % (self.kind, doc.get("_id"))) from e

    def writer(self, refresh=False):
        if refresh:
            return self.collection.with_options(write_concern=REFRESH_WRITE_CONCERN)
        return self.collection

    def write_one(self, entity, refresh=False, upsert=True):
        """
        Replace the document for the entity's key and return what was persisted.
        """
        key = self.identity(entity)
        try:
            result = self.writer(refresh).replace_one({"_id": key}, self.to_document(entity), upsert=upsert)
        except PyMongoError as e:
            logger.exception("Failed to save %s %s", self.kind, key)
            raise PersistenceFailure("Failed to save %s %s: %s" % (self.kind, key, e)) from e
        if not result.acknowledged or (result.upserted_id is None and result.matched_count <= 0):
            logger.error("Saving %s %s did not create or update a document", self.kind, key)
            raise PersistenceFailure("Failed to save %s %s; the document was neither created nor updated" % (self.kind, key))
        saved = self.find_by_id(key)
        if saved is None:
            raise PersistenceFailure("Failed to save %s %s; the document cannot be found after the write" % (self.kind, key))
        return saved

    def save(self, entity, refresh=False):
        """
        Create or replace the entity keyed by its identity.
        :return: The entity as persisted.
        """
        saved = self.write_one(self.prepare(entity), refresh=refresh)
        logger.info("Saved %s %s", self.kind, self.identity(saved))
        return saved

    def prepare_all(self, entities):
        """
        Hook for batched writes; return the entities to write and a list of (identity, reason) for the rejected ones.
        """
        return [self.prepare(e) for e in entities], []

    def save_all(self, entities, refresh=False):
        """
        Save the entities in a single batch. Either all of them are saved and returned, or a PersistenceFailure names every failure.
        """
        prepared, rejected = self.prepare_all(list(entities))
        operations = [ReplaceOne({"_id": self.identity(e)}, self.to_document(e), upsert=True) for e in prepared]
        return reconcile_bulk_write(prepared, self.identity,
            lambda: self.writer(refresh).bulk_write(operations, ordered=False),
            kind=self.kind, rejected=rejected)

    def find_by_id(self, key):
        """
        :return: The entity or None if there is no record for the key.
        """
        stored_key = self.normalize_key(key)
        if stored_key is None:
            return None
        try:
            doc = self.collection.find_one({"_id": stored_key})
        except PyMongoError as e:
            logger.exception("Failed to find %s %s", self.kind, key)
            raise LookupFailure("Failed to find %s %s: %s" % (self.kind, key, e)) from e
        return self.from_document(doc) if doc else None

    def exists_by_id(self, key):
        return self.find_by_id(key) is not None

    def exists_by_ids(self, keys):
        return all(self.exists_by_id(key) for key in keys)

    def find_all(self):
        """
        The active records, sorted by name and limited to result_size.
        This is a small directory listing and not a full scan.
        """
        try:
            docs = list(self.collection.find({"state": State.Active.value}).sort(self.list_sort).limit(self.result_size))
        except PyMongoError as e:
            logger.exception("Failed to find %s", self.kind)
            raise LookupFailure("Failed to find %s: %s" % (self.kind, e)) from e
        return [self.from_document(doc) for doc in docs]

    def find_all_by_id(self, keys):
        """
        Best effort multi get; keys that are missing or whose documents cannot be parsed are left out.
        The results are in the order of the keys.
        """
        stored_keys = [k for k in (self.normalize_key(key) for key in keys) if k is not None]
        try:
            docs = {doc["_id"]: doc for doc in self.collection.find({"_id": {"$in": stored_keys}})}
        except PyMongoError as e:
            logger.exception("Failed to find %s %s", self.kind, keys)
            raise LookupFailure("Failed to find %s %s: %s" % (self.kind, keys, e)) from e
        found = []
        for key in stored_keys:
            if key in docs:
                try:
                    found.append(self.model.model_validate(docs[key]))
                except ValidationError:
                    logger.warning("Skipping malformed %s document %s", self.kind, key)
        return found

    def count(self):
        raise UnsupportedOperation("Counting %s is not supported" % self.kind)

    def delete_by_id(self, key):
        """
        Logical delete; the record is marked Inactive and kept.
        :raises NotFound if there is no record for the key.
        """
        existing = self.find_by_id(key)
        if existing is None:
            logger.error("Failed to delete %s %s because it does not exist", self.kind, key)
            raise NotFound(self.kind, key, operation="delete")
        try:
            self.write_one(self.deactivate(existing), upsert=False)
        except PersistenceFailure as e:
            # The record went away between the read and the write.
            if self.find_by_id(key) is None:
                raise NotFound(self.kind, key, operation="delete") from e
            raise
        logger.info("Deleted %s %s", self.kind, key)

    def delete(self, entity):
        self.delete_by_id(self.identity(entity))

    def delete_all(self, entities=None):
        """
        Logically delete each of the specified entities.
        Deleting everything in one call is not allowed.
        """
        if entities is None:
            raise Forbidden("Deleting all %s is not allowed" % self.kind)
        for entity in entities:
            self.delete(entity)


class LogbookRepository(StateAwareRepository):
    kind = "logbook"
    model = Logbook
    collection_name = context.LOGBOOK_COLLECTION
    result_size = context.RESULT_SIZE_LOGBOOKS


class TagRepository(StateAwareRepository):
    kind = "tag"
    model = Tag
    collection_name = context.TAG_COLLECTION
    result_size = context.RESULT_SIZE_TAGS


class PropertyRepository(StateAwareRepository):
    kind = "property"
    model = Property
    collection_name = context.PROPERTY_COLLECTION
    result_size = context.RESULT_SIZE_PROPERTIES
