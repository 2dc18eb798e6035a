'''
Exceptions raised by the data access layer.
Callers can tell "does not exist" (NotFound, a None from a find) from "could not be determined" (LookupFailure).
'''


class LgbkException(Exception):
    pass


class NotFound(LgbkException):
    """
    The target of a point lookup or delete does not exist.
    """
    def __init__(self, kind, key, operation="find"):
        super().__init__("Failed to %s %s %s because it does not exist" % (operation, kind, key))
        self.kind = kind
        self.key = key
        self.operation = operation


class InvalidReference(LgbkException):
    """
    A log entry references logbooks, tags or properties that are missing or inactive.
    All the offending references are collected in `problems` so they can be fixed in one go.
    """
    def __init__(self, key, problems):
        super().__init__("Invalid references in log %s: %s" % (key, "; ".join(problems)))
        self.key = key
        self.problems = list(problems)


class PersistenceFailure(LgbkException):
    """
    A write was rejected or returned an ambiguous status.
    For batched writes, `failures` is a list of (identity, reason) for every item that failed.
    """
    def __init__(self, message, failures=None):
        super().__init__(message)
        self.failures = list(failures or [])


class LookupFailure(LgbkException):
    """
    Infrastructure error during a read; a timeout or a document that cannot be parsed.
    """
    pass


class UnsupportedOperation(LgbkException):
    pass


class Forbidden(LgbkException):
    pass


class InvalidSearchParameter(LgbkException):
    def __init__(self, parameter, value, reason):
        super().__init__("Invalid value %r for search parameter %s: %s" % (value, parameter, reason))
        self.parameter = parameter
        self.value = value
