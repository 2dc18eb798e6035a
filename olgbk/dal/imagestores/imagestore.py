import abc

class ImageStore(abc.ABC):
    @abc.abstractmethod
    def store_file_and_return_id(self, filename, mimetype, filecontents):
        """
        Store the contents of the file like filecontents object as the specified filename.
        Return an id that the store can later use to retrieve the contents.
        """
        pass

    @abc.abstractmethod
    def return_file_contents(self, blob_id):
        """
        Return the contents for the id as a file like object; None if the store does not have it.
        """
        pass

    def delete_file(self, blob_id):
        """
        Best effort removal of the contents for the id.
        Deleting a log entry does not call this; the payloads are left for manual cleanup.
        """
        pass
