"""
Shared pytest fixtures for olgbk tests.

Mongo is replaced by mongomock; attachments go to an in-memory image store.
"""

import functools
import io

import mongomock
import pytest
from mongomock.collection import BulkOperationBuilder

from olgbk.dal.imagestores import ImageStore
from olgbk.dal.log_repository import LogRepository
from olgbk.dal.models import Attribute, Logbook, Property, State, Tag
from olgbk.dal.repository import LogbookRepository, PropertyRepository, TagRepository


class MemoryImageStore(ImageStore):
    """Image store that keeps the payloads in a dict; can be told to fail."""

    def __init__(self):
        self.files = {}
        self.fail = False

    def store_file_and_return_id(self, filename, mimetype, filecontents):
        if self.fail:
            raise IOError("Image store is not reachable")
        blob_id = "blob-%s" % (len(self.files) + 1)
        self.files[blob_id] = (filename, mimetype, filecontents.read())
        return blob_id

    def return_file_contents(self, blob_id):
        if blob_id not in self.files:
            return None
        return io.BytesIO(self.files[blob_id][2])


def _ignore_sort(add_method):
    @functools.wraps(add_method)
    def wrapper(self, *args, sort=None, **kwargs):
        return add_method(self, *args, **kwargs)
    return wrapper


@pytest.fixture(autouse=True)
def mongomock_bulk_compat(monkeypatch):
    """Newer pymongo passes a sort option to the bulk builders; mongomock's builder does not know about it."""
    monkeypatch.setattr(BulkOperationBuilder, "add_replace", _ignore_sort(BulkOperationBuilder.add_replace))
    monkeypatch.setattr(BulkOperationBuilder, "add_update", _ignore_sort(BulkOperationBuilder.add_update))


@pytest.fixture
def db():
    return mongomock.MongoClient()["olog_test"]


@pytest.fixture
def logbook_repository(db):
    return LogbookRepository(db)


@pytest.fixture
def tag_repository(db):
    return TagRepository(db)


@pytest.fixture
def property_repository(db):
    return PropertyRepository(db)


@pytest.fixture
def imagestore():
    return MemoryImageStore()


@pytest.fixture
def log_repository(db, logbook_repository, tag_repository, property_repository, imagestore):
    return LogRepository(db, logbook_repository=logbook_repository, tag_repository=tag_repository,
                         property_repository=property_repository, imagestore=imagestore)


@pytest.fixture
def operations_logbook(logbook_repository):
    return logbook_repository.save(Logbook(name="Operations", owner="operator"))


@pytest.fixture
def fault_tag(tag_repository):
    return tag_repository.save(Tag(name="Fault", owner="operator"))


@pytest.fixture
def shift_property(property_repository):
    return property_repository.save(Property(
        name="Shift", owner="operator", state=State.Active,
        attributes=[Attribute(name="leader"), Attribute(name="number")]))
