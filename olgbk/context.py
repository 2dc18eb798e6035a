'''
Application context; configuration comes from the environment.
The Mongo client and the image store are created on first use.
'''
import os
import logging

from pymongo import MongoClient, ReadPreference

logger = logging.getLogger(__name__)

MONGODB_HOST=os.environ.get('MONGODB_HOST', "localhost")
MONGODB_PORT=int(os.environ.get('MONGODB_PORT', 27017))
MONGODB_HOSTS=os.environ.get("MONGODB_HOSTS", None)
if not MONGODB_HOSTS:
    MONGODB_HOSTS = MONGODB_HOST + ":" + str(MONGODB_PORT)
MONGODB_URL=os.environ.get("MONGODB_URL", None)
if not MONGODB_URL:
    MONGODB_URL = "mongodb://" + MONGODB_HOSTS + "/admin"

MONGODB_USERNAME=os.environ.get('MONGODB_USERNAME', None)
MONGODB_PASSWORD=os.environ.get('MONGODB_PASSWORD', None)

# Every call to Mongo is bounded by this; a timeout surfaces as a LookupFailure/PersistenceFailure and is not retried here.
MONGODB_TIMEOUT_MS=int(os.environ.get('MONGODB_TIMEOUT_MS', 10000))

LOGBOOK_DATABASE = os.environ.get('LOGBOOK_DATABASE', "olog")
LOGBOOK_COLLECTION = os.environ.get('LOGBOOK_COLLECTION', "logbooks")
TAG_COLLECTION = os.environ.get('TAG_COLLECTION', "tags")
PROPERTY_COLLECTION = os.environ.get('PROPERTY_COLLECTION', "properties")
LOG_COLLECTION = os.environ.get('LOG_COLLECTION', "logs")
COUNTER_COLLECTION = os.environ.get('COUNTER_COLLECTION', "counters")

# The find_all directory listings are deliberately small.
RESULT_SIZE_LOGBOOKS = int(os.environ.get('RESULT_SIZE_LOGBOOKS', 10))
RESULT_SIZE_TAGS = int(os.environ.get('RESULT_SIZE_TAGS', 10))
RESULT_SIZE_PROPERTIES = int(os.environ.get('RESULT_SIZE_PROPERTIES', 10))
RESULT_SIZE_LOGS = int(os.environ.get('RESULT_SIZE_LOGS', 100))
# find_all on log entries is a short listing of the latest entries; searches page with RESULT_SIZE_LOGS.
RESULT_SIZE_LOG_LISTING = int(os.environ.get('RESULT_SIZE_LOG_LISTING', 10))

# Sort order for log searches on creation time; "down" is newest first, "up" is oldest first.
SEARCH_SORT_ORDER = os.environ.get('SEARCH_SORT_ORDER', "down")

# mongo:// stores attachments in GridFS in the logbook database; http:// uses a SeaweedFS master.
IMAGE_STORE_URL = os.environ.get("IMAGE_STORE_URL", "mongo://")
IMAGE_STORE_TIMEOUT = float(os.environ.get("IMAGE_STORE_TIMEOUT", 30))

logbookclient = None
imagestore = None


def get_logbookclient():
    global logbookclient
    if logbookclient is None:
        logger.info("Connecting to Mongo at %s", MONGODB_HOSTS)
        logbookclient = MongoClient(host=MONGODB_URL, username=MONGODB_USERNAME, password=MONGODB_PASSWORD,
            tz_aware=False, read_preference=ReadPreference.PRIMARY_PREFERRED,
            serverSelectionTimeoutMS=MONGODB_TIMEOUT_MS, connectTimeoutMS=MONGODB_TIMEOUT_MS, socketTimeoutMS=MONGODB_TIMEOUT_MS)
    return logbookclient


def get_logbook_db():
    return get_logbookclient()[LOGBOOK_DATABASE]


def get_imagestore():
    global imagestore
    if imagestore is None:
        from olgbk.dal.imagestores import parseImageStoreURL
        imagestore = parseImageStoreURL(IMAGE_STORE_URL)
    return imagestore
