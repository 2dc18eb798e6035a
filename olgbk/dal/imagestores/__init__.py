__all__ = ["imagestore", "seaweed", "gridfs"]

from .imagestore import ImageStore
from .seaweed import SeaWeed
from .gridfs import GridFSIS

def parseImageStoreURL(imagestoreurl, db=None):
    if imagestoreurl.startswith("http://") or imagestoreurl.startswith("https://"):
        return SeaWeed(imagestoreurl)
    elif imagestoreurl.startswith("mongo://"):
        return GridFSIS(db)
    else:
        raise Exception("Cannot initialize image store with unknown scheme " + imagestoreurl)
