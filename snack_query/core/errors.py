"""
Error vocabulary of the query layer.

Callers branch on these types instead of on driver internals. Driver
failures other than timeouts are not wrapped: they propagate as the
driver's own exceptions, exposed here as ``DriverError``.
"""

from pymongo.errors import PyMongoError

DriverError = PyMongoError


class SnackQueryError(Exception):
    """Base class for errors raised by the query layer."""


class NotFoundError(SnackQueryError):
    """No document matched a point lookup."""
    
    def __init__(self, collection: str, query: object = None):
        self.collection = collection
        self.query = query
        super().__init__(f"no document found in '{collection}'")


class TranslationError(SnackQueryError):
    """A query model value could not be translated into a native query."""
    
    def __init__(self, message: str, key: str = ""):
        self.key = key
        if key:
            message = f"{message} (key={key!r})"
        super().__init__(message)


class DecodeError(SnackQueryError):
    """A stored document could not be decoded into the requested type."""


class CancellationError(SnackQueryError):
    """The caller's deadline expired before the native call completed."""
