"""
Store - owns the storage engine and the stores built on top of it.
"""

import logging
from typing import Any

from docstore.engine.credentials import CredentialStore
from docstore.engine.documents import DocumentStore
from docstore.engine.lmdb_backend import LmdbBackend
from docstore.engine.registry import NamespaceRegistry
from docstore.models.exceptions import NotFound

logger = logging.getLogger(__name__)


class Store:
    """
    Namespaced key-value document store.

    One instance per process: constructed at startup, passed to every route
    registration, closed after the last request completes.

    Attributes:
        backend: LMDB binding shared by all components.
        namespaces: Namespace registry.
        documents: Document store (auto-create per configuration).
        credentials: API key store.
    """

    def __init__(
        self,
        path: str,
        map_size: int = LmdbBackend.DEFAULT_MAP_SIZE,
        max_dbs: int = LmdbBackend.DEFAULT_MAX_DBS,
        auto_create: bool = False,
    ) -> None:
        self.backend = LmdbBackend(path, map_size=map_size, max_dbs=max_dbs)
        self.namespaces = NamespaceRegistry(self.backend)
        self.documents = DocumentStore(self.backend, self.namespaces, auto_create=auto_create)
        self.credentials = CredentialStore(self.backend)
        self._opened = False

    @classmethod
    async def create(
        cls,
        path: str,
        map_size: int = LmdbBackend.DEFAULT_MAP_SIZE,
        max_dbs: int = LmdbBackend.DEFAULT_MAX_DBS,
        auto_create: bool = False,
    ) -> "Store":
        """
        Async factory method to create and open a store.

        Args:
            path: Directory of the LMDB environment.
            map_size: Maximum LMDB map size in bytes.
            max_dbs: Maximum number of named databases.
            auto_create: Let document writes create missing namespaces.

        Returns:
            Opened Store instance.
        """
        store = cls(path, map_size=map_size, max_dbs=max_dbs, auto_create=auto_create)
        await store.open()
        return store

    async def open(self) -> None:
        if self._opened:
            return
        await self.backend.open()
        await self.namespaces.open()
        await self.credentials.open()
        self._opened = True

    async def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        await self.backend.close()

    async def stats(self) -> dict[str, Any]:
        """Counts across all namespaces, for the admin surface."""
        names = await self.namespaces.list()
        total = 0
        for name in names:
            try:
                total += await self.documents.count(name)
            except NotFound:
                # Deleted since it was listed
                continue

        engine = self.backend.info()
        return {
            "databases": len(names),
            "totalRecords": total,
            "apiKeys": await self.credentials.count(),
            "lmdbPath": self.backend.path,
            "mapSize": engine["map_size"],
            "lastTxnId": engine["last_txnid"],
            "maxKeySize": engine["max_key_size"],
        }

    async def __aenter__(self) -> "Store":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
