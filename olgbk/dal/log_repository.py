'''
Repository for log entries.

Before a log entry is written, every logbook, tag and property it references is checked; they must exist and be active.
The references are then expanded into full copies so that log entries read back (or found by a search) need no further lookups.
Later deactivating a logbook or tag does not touch the log entries that already reference it.
'''
import io
import logging

from pymongo import DESCENDING, ReplaceOne, ReturnDocument
from pymongo.errors import PyMongoError

from olgbk import context
from olgbk.dal.bulk import reconcile_bulk_write
from olgbk.dal.exceptions import LgbkException, NotFound, InvalidReference, PersistenceFailure, LookupFailure
from olgbk.dal.models import State, Log, SearchResult
from olgbk.dal.repository import StateAwareRepository, LogbookRepository, TagRepository, PropertyRepository
from olgbk.dal.search import build_search_query
from olgbk.dal.utils import utcnow_millis

logger = logging.getLogger(__name__)

LOG_ID_COUNTER = "next_logid"


class LogRepository(StateAwareRepository):
    kind = "log"
    model = Log
    collection_name = context.LOG_COLLECTION
    result_size = context.RESULT_SIZE_LOG_LISTING
    list_sort = [("created_date", DESCENDING), ("_id", DESCENDING)]

    def __init__(self, db=None, collection_name=None, result_size=None,
            logbook_repository=None, tag_repository=None, property_repository=None, imagestore=None):
        super().__init__(db=db, collection_name=collection_name, result_size=result_size)
        self.logbook_repository = logbook_repository or LogbookRepository(self.db)
        self.tag_repository = tag_repository or TagRepository(self.db)
        self.property_repository = property_repository or PropertyRepository(self.db)
        self._imagestore = imagestore

    @property
    def imagestore(self):
        if self._imagestore is None:
            self._imagestore = context.get_imagestore()
        return self._imagestore

    def identity(self, entity):
        return entity.id

    def normalize_key(self, key):
        try:
            return int(key)
        except (TypeError, ValueError):
            return None

    def next_log_ids(self, count=1):
        """
        Reserve count new log ids; ids are never reused even if the write that reserved them fails.
        """
        try:
            counter = self.db[context.COUNTER_COLLECTION].find_one_and_update(
                {"_id": LOG_ID_COUNTER}, {"$inc": {"seq": count}}, upsert=True, return_document=ReturnDocument.AFTER)
        except PyMongoError as e:
            logger.exception("Could not update the log id counter")
            raise PersistenceFailure("Could not update the log id counter: %s" % e) from e
        return list(range(counter["seq"] - count + 1, counter["seq"] + 1))

    def __resolve__(self, repository, names, problems):
        resolved = []
        for name in names:
            # A stored document that cannot be parsed raises LookupFailure; it is not reported as missing.
            entity = repository.find_by_id(name)
            if entity is None:
                problems.append("%s %s does not exist" % (repository.kind, name))
            elif not entity.is_active:
                problems.append("%s %s is inactive" % (repository.kind, name))
            else:
                resolved.append(entity)
        return resolved

    def validate_references(self, log):
        """
        Check the logbooks, tags and properties referenced by the log entry.
        :return: A tuple of the log entry with the references expanded and a list of all the problems found.
        """
        problems = []
        if not log.logbooks:
            problems.append("a log entry needs at least one logbook")
        logbooks = self.__resolve__(self.logbook_repository, [x.name for x in log.logbooks], problems)
        tags = self.__resolve__(self.tag_repository, [x.name for x in log.tags], problems)
        canonical_props = {x.name: x for x in self.__resolve__(self.property_repository, [x.name for x in log.properties], problems)}
        # The log entry keeps its own attribute values; the owner and state come from the canonical property.
        properties = [p.model_copy(update={"owner": canonical_props[p.name].owner, "state": State.Active.value})
            for p in log.properties if p.name in canonical_props]
        expanded = log.model_copy(update={"logbooks": logbooks, "tags": tags, "properties": properties})
        return expanded, problems

    def prepare(self, log):
        expanded, problems = self.validate_references(log)
        if problems:
            logger.error("Invalid references in log entry %s: %s", log.title or log.id, problems)
            raise InvalidReference(log.id if log.id is not None else log.title, problems)
        if log.id is None:
            return self.__stamp__(expanded, self.next_log_ids()[0])
        existing = self.find_by_id(log.id)
        if existing is None:
            logger.error("Cannot update log entry %s because it does not exist", log.id)
            raise NotFound(self.kind, log.id, operation="update")
        return self.__stamp__(expanded, existing.id, existing.created_date)

    def __stamp__(self, log, log_id, created_date=None):
        """
        Ids come only from the counter or from an existing log entry; so does the creation time.
        """
        now = utcnow_millis()
        return log.model_copy(update={
            "id": log_id,
            "created_date": created_date or now,
            "modified_date": now,
            "state": State.Active.value})

    def deactivate(self, log):
        return log.model_copy(update={"state": State.Inactive.value, "modified_date": utcnow_millis()})

    def save(self, log, refresh=False, files=None):
        """
        Validate and write the log entry.
        :param files - Optional list of (Attachment, file like object or bytes) to store in the image store first.
        :return: The log entry as persisted; with its id and timestamps.
        If the log entry cannot be written after the attachments were stored, the stored attachments are orphaned.
        We log their ids for manual cleanup; there is no attempt to remove them.
        """
        prepared = self.prepare(log)
        stored = []
        if files:
            stored = self.store_attachments(files)
            prepared = prepared.model_copy(update={"attachments": list(prepared.attachments) + stored})
        try:
            saved = self.write_one(prepared, refresh=refresh)
        except LgbkException:
            if stored:
                logger.error("Log entry %s was not saved; orphaned attachments in the image store %s", prepared.id, [x.id for x in stored])
            raise
        logger.info("Saved log entry %s", saved.id)
        return saved

    def store_attachments(self, files):
        """
        Store the attachment payloads in the image store.
        :return: The attachments with the image store ids and the file sizes filled in.
        """
        stored = []
        for attachment, filecontents in files:
            try:
                if isinstance(filecontents, (bytes, bytearray)):
                    filecontents = io.BytesIO(filecontents)
                elif not filecontents.seekable():
                    # Pipes and request bodies; we need the size before handing the stream to the image store.
                    filecontents = io.BytesIO(filecontents.read())
                filecontents.seek(0, 2)
                file_size = filecontents.tell()
                filecontents.seek(0, 0)
                blob_id = self.imagestore.store_file_and_return_id(attachment.filename, attachment.content_type, filecontents)
            except Exception as e:
                logger.exception("Failed to store attachment %s", attachment.filename)
                if stored:
                    logger.error("Orphaned attachments in the image store %s", [x.id for x in stored])
                raise PersistenceFailure("Failed to store attachment %s: %s" % (attachment.filename, e)) from e
            stored.append(attachment.model_copy(update={"id": blob_id, "file_size": file_size}))
        return stored

    def get_attachment_contents(self, blob_id):
        """
        :return: The contents of the attachment as a file like object.
        :raises NotFound if the image store does not have it.
        """
        try:
            contents = self.imagestore.return_file_contents(blob_id)
        except Exception as e:
            logger.exception("Failed to fetch attachment %s", blob_id)
            raise LookupFailure("Failed to fetch attachment %s: %s" % (blob_id, e)) from e
        if contents is None:
            raise NotFound("attachment", blob_id)
        return contents

    def prepare_all(self, logs):
        """
        Validate the whole batch before reserving any ids.
        Log entries with an id must already exist and keep their creation time; the rest get new ids from the counter.
        """
        expanded, created_dates, rejected = [], [], []
        for index, log in enumerate(logs):
            candidate, problems = self.validate_references(log)
            created_date = None
            if log.id is not None:
                existing = self.find_by_id(log.id)
                if existing is None:
                    problems.append("log entry %s does not exist" % log.id)
                else:
                    created_date = existing.created_date
            if problems:
                rejected.append((log.title or "log entry %s in the batch" % index, "; ".join(problems)))
            expanded.append(candidate)
            created_dates.append(created_date)
        if rejected:
            return expanded, rejected
        new_count = len([x for x in expanded if x.id is None])
        new_ids = iter(self.next_log_ids(new_count) if new_count else [])
        return [self.__stamp__(log, log.id if log.id is not None else next(new_ids), created_date)
            for log, created_date in zip(expanded, created_dates)], []

    def save_all(self, logs, refresh=False):
        """
        Save the log entries in a single batch; all of them must have valid references.
        """
        prepared, rejected = self.prepare_all(list(logs))
        operations = [ReplaceOne({"_id": log.id}, self.to_document(log), upsert=True) for log in prepared] if not rejected else []
        return reconcile_bulk_write(prepared, self.identity,
            lambda: self.writer(refresh).bulk_write(operations, ordered=False),
            kind=self.kind, rejected=rejected)

    def search(self, params, size=None, sort=None):
        """
        Search for log entries.
        :param params - Mapping of search parameter to a list of values; see olgbk.dal.search for the vocabulary.
        :param size - The maximum number of log entries to return; defaults to RESULT_SIZE_LOGS.
        :param sort - "down" for newest first (the default) or "up" for oldest first.
        :return: SearchResult with the matching log entries and the total number of matches.
        """
        query = build_search_query(params, size=size, sort=sort)
        try:
            docs = list(self.collection.find(query.filter).sort(query.sort).limit(query.size))
            total_count = self.collection.count_documents(query.filter)
        except PyMongoError as e:
            logger.exception("Failed to search for log entries with %s", params)
            raise LookupFailure("Failed to search for log entries: %s" % e) from e
        return SearchResult(logs=[self.from_document(doc) for doc in docs], total_count=total_count)
