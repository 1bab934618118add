"""
Namespace registry - tracks which logical databases exist.
"""

import logging
from typing import Any

from docstore.interfaces.backend import KeyValueBackend, Transaction
from docstore.models.exceptions import AlreadyExists, NotFound
from docstore.models.namespace import NamespaceInfo
from docstore.models.validation import RESERVED_NAMES, validate_name

logger = logging.getLogger(__name__)

META_KEYSPACE = "__meta"


class NamespaceRegistry:
    """
    Registry of user namespaces, backed by the reserved __meta keyspace.

    The metadata record is authoritative: a namespace exists if and only if
    its record is present, regardless of whether its keyspace has been opened.
    """

    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend
        self._meta: Any = None

    async def open(self) -> None:
        self._meta = await self._backend.keyspace(META_KEYSPACE)

    @property
    def meta(self) -> Any:
        """Handle of the metadata keyspace, for use inside transactions."""
        if self._meta is None:
            raise RuntimeError("NamespaceRegistry is not open")
        return self._meta

    async def keyspace(self, name: str) -> Any:
        """Return the keyspace handle for a namespace name (no existence check)."""
        return await self._backend.keyspace(name)

    def register(self, txn: Transaction, name: str) -> bool:
        """
        Write the metadata record for name within an existing write transaction.

        Returns:
            True if the record was written, False if it already existed.
        """
        info = NamespaceInfo.new(name)
        return txn.put(self.meta, name.encode("utf-8"), bytes(info), overwrite=False)

    def is_registered(self, txn: Transaction, name: str) -> bool:
        return txn.get(self.meta, name.encode("utf-8")) is not None

    def require(self, txn: Transaction, name: str) -> None:
        """Raise NotFound unless name is registered, within a transaction."""
        if not self.is_registered(txn, name):
            raise NotFound(f"Database '{name}' not found")

    async def create(self, name: str) -> NamespaceInfo:
        """
        Create a namespace.

        Raises:
            InvalidName: If the name is malformed or reserved.
            AlreadyExists: If a namespace with this name exists.
        """
        validate_name(name)
        keyspace = await self.keyspace(name)

        def _create(txn: Transaction) -> NamespaceInfo:
            info = NamespaceInfo.new(name)
            if not txn.put(self.meta, name.encode("utf-8"), bytes(info), overwrite=False):
                raise AlreadyExists(f"Database '{name}' already exists")
            # A reused name must start empty even if an older keyspace survived
            txn.clear(keyspace)
            return info

        info = await self._backend.write(_create)
        logger.info(f"Created database {name}")
        return info

    async def delete(self, name: str) -> None:
        """
        Delete a namespace and every document in it.

        Documents are cleared before the metadata record is removed, and both
        happen in one write transaction, so a crash can never leave documents
        reachable under a namespace that is no longer listed.

        Raises:
            InvalidName: If the name is malformed or reserved.
            NotFound: If the namespace does not exist.
        """
        validate_name(name)
        if not await self.exists(name):
            raise NotFound(f"Database '{name}' not found")
        keyspace = await self.keyspace(name)

        def _delete(txn: Transaction) -> None:
            self.require(txn, name)
            txn.clear(keyspace)
            txn.delete(self.meta, name.encode("utf-8"))

        await self._backend.write(_delete)
        logger.info(f"Deleted database {name}")

    async def list(self) -> list[str]:
        """Return all user namespace names in ascending order."""
        records = await self._backend.read(lambda txn: txn.scan(self.meta))
        names = (key.decode("utf-8") for key, _ in records)
        return sorted(name for name in names if name not in RESERVED_NAMES)

    async def exists(self, name: str) -> bool:
        if name in RESERVED_NAMES:
            return False
        return await self._backend.read(lambda txn: self.is_registered(txn, name))

    async def info(self, name: str) -> NamespaceInfo:
        def _info(txn: Transaction) -> NamespaceInfo:
            data = txn.get(self.meta, name.encode("utf-8"))
            if data is None or name in RESERVED_NAMES:
                raise NotFound(f"Database '{name}' not found")
            return NamespaceInfo.from_bytes(data)

        return await self._backend.read(_info)
