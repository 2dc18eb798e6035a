from olgbk.dal.imagestores.imagestore import ImageStore
import logging

from bson import ObjectId
from bson.errors import InvalidId
from gridfs import GridFS
from gridfs.errors import NoFile

logger = logging.getLogger(__name__)

class GridFSIS(ImageStore):
    def __init__(self, db=None):
        self.db = db

    def __fs__(self):
        if self.db is None:
            from olgbk.context import get_logbook_db
            self.db = get_logbook_db()
        return GridFS(self.db)

    def store_file_and_return_id(self, filename, mimetype, filecontents):
        fid = self.__fs__().put(filecontents, filename=filename, content_type=mimetype)
        logger.info("Stored attachment %s in GridFS as %s", filename, fid)
        return str(fid)

    def return_file_contents(self, blob_id):
        try:
            return self.__fs__().get(ObjectId(blob_id))
        except (NoFile, InvalidId):
            return None

    def delete_file(self, blob_id):
        self.__fs__().delete(ObjectId(blob_id))
