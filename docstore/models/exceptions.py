"""
Error taxonomy for the document store.

Every failure raised by the store carries an ErrorKind discriminant so the
HTTP layer can choose a status code without inspecting messages.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable machine-readable error categories."""

    INVALID_NAME = "invalid_name"
    INVALID_KEY = "invalid_key"
    INVALID_VALUE = "invalid_value"
    INVALID_QUERY = "invalid_query"
    DUPLICATE_KEY = "duplicate_key"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    ENGINE_FAILURE = "engine_failure"


class StoreError(Exception):
    """Base class for all store errors."""

    kind: ErrorKind = ErrorKind.ENGINE_FAILURE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidName(StoreError):
    """Namespace or bucket name fails the charset/length rule, or is reserved."""

    kind = ErrorKind.INVALID_NAME


class InvalidKey(StoreError):
    """Document or file key fails a static validation rule."""

    kind = ErrorKind.INVALID_KEY


class InvalidValue(StoreError):
    """Document value cannot be serialized as JSON."""

    kind = ErrorKind.INVALID_VALUE


class InvalidQuery(StoreError):
    """List options are malformed (e.g. a non-positive limit)."""

    kind = ErrorKind.INVALID_QUERY


class DuplicateKey(StoreError):
    """A document with the same key already exists in the namespace."""

    kind = ErrorKind.DUPLICATE_KEY


class AlreadyExists(StoreError):
    """A namespace or bucket with the same name already exists."""

    kind = ErrorKind.ALREADY_EXISTS


class NotFound(StoreError):
    """The targeted namespace, document, credential, bucket or file is absent."""

    kind = ErrorKind.NOT_FOUND


class EngineFailure(StoreError):
    """
    Raised when the storage engine reports an I/O or corruption error.

    Fatal for the current operation and never retried; the engine message is
    kept for diagnostics.
    """

    kind = ErrorKind.ENGINE_FAILURE
