"""
Data models for the document store.
"""

from docstore.models.credential import Credential, GeneratedKey
from docstore.models.document import Document
from docstore.models.exceptions import (
    AlreadyExists,
    DuplicateKey,
    EngineFailure,
    ErrorKind,
    InvalidKey,
    InvalidName,
    InvalidQuery,
    InvalidValue,
    NotFound,
    StoreError,
)
from docstore.models.file_info import FileInfo
from docstore.models.namespace import NamespaceInfo
from docstore.models.query import KeyRange, QueryOptions

__all__ = [
    "AlreadyExists",
    "Credential",
    "Document",
    "DuplicateKey",
    "EngineFailure",
    "ErrorKind",
    "FileInfo",
    "GeneratedKey",
    "InvalidKey",
    "InvalidName",
    "InvalidQuery",
    "InvalidValue",
    "KeyRange",
    "NamespaceInfo",
    "NotFound",
    "QueryOptions",
    "StoreError",
]
