"""
Storage engine binding and the stores layered on it.
"""

from docstore.engine.credentials import CredentialStore
from docstore.engine.documents import DocumentStore
from docstore.engine.lmdb_backend import LmdbBackend
from docstore.engine.registry import NamespaceRegistry
from docstore.engine.store import Store

__all__ = ["CredentialStore", "DocumentStore", "LmdbBackend", "NamespaceRegistry", "Store"]
