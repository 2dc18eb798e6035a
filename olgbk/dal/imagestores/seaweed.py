from olgbk.dal.imagestores.imagestore import ImageStore

import logging
import io
import requests

from olgbk.context import IMAGE_STORE_TIMEOUT

logger = logging.getLogger(__name__)


class SeaWeed(ImageStore):
    def __init__(self, imagestoreurl, timeout=IMAGE_STORE_TIMEOUT):
        if not imagestoreurl.endswith("/"):
            imagestoreurl = imagestoreurl + "/"
        self.imagestoreurl = imagestoreurl
        self.timeout = timeout

    def store_file_and_return_id(self, filename, mimetype, filecontents):
        assign = requests.post(self.imagestoreurl + "dir/assign", timeout=self.timeout)
        assign.raise_for_status()
        isloc = assign.json()
        public_url = isloc["publicUrl"]
        if not public_url.startswith("http"):
            public_url = "http://" + public_url
        if not public_url.endswith("/"):
            public_url = public_url + "/"
        imgurl = public_url + isloc["fid"]
        logger.info("Posting attachment %s to URL %s", filename, imgurl)
        files = {
            "file": (
                filename,
                filecontents,
                mimetype,
                {"Content-Disposition": "inline; filename=%s" % filename},
            )
        }
        requests.post(imgurl, files=files, timeout=self.timeout).raise_for_status()
        return imgurl

    def return_file_contents(self, blob_id):
        resp = requests.get(blob_id, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return io.BytesIO(resp.content)

    def delete_file(self, blob_id):
        resp = requests.delete(blob_id, timeout=self.timeout)
        if resp.status_code != 404:
            resp.raise_for_status()
