"""
Document store - CRUD and ranged listing over a named namespace.
"""

import logging
from typing import Any

from docstore.engine.planner import plan
from docstore.engine.registry import NamespaceRegistry
from docstore.interfaces.backend import KeyValueBackend, Transaction
from docstore.models.document import Document, encode_value
from docstore.models.exceptions import DuplicateKey, NotFound
from docstore.models.query import QueryOptions
from docstore.models.validation import MAX_DOCUMENT_KEY_BYTES, validate_document_key, validate_name

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Documents keyed by string within a namespace.

    Provides:
    - create(ns, key, value): fails on duplicate key
    - get(ns, key)
    - update(ns, key, value): whole-value replace, fails if absent
    - delete(ns, key): fails if absent
    - list(ns, options): ordered prefix/range scan with a limit

    Every operation checks the namespace's metadata record inside the same
    transaction that touches its documents, so it can never race with a
    concurrent namespace delete.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        registry: NamespaceRegistry,
        auto_create: bool = False,
    ) -> None:
        """
        Args:
            backend: Storage engine binding.
            registry: Namespace registry sharing the same backend.
            auto_create: If True, create() registers a missing namespace in the
                same transaction instead of failing with NotFound.
        """
        self._backend = backend
        self._registry = registry
        self._auto_create = auto_create

    @property
    def auto_create(self) -> bool:
        return self._auto_create

    def with_auto_create(self, auto_create: bool = True) -> "DocumentStore":
        """Return a view of this store with a different auto-create setting."""
        return DocumentStore(self._backend, self._registry, auto_create=auto_create)

    def _encode_key(self, key: str) -> bytes:
        # LMDB rejects keys above its compiled limit (511 bytes by default)
        max_bytes = min(MAX_DOCUMENT_KEY_BYTES, self._backend.max_key_size)
        return validate_document_key(key, max_bytes=max_bytes)

    async def _keyspace(self, ns: str, create: bool = False) -> Any:
        validate_name(ns)
        # Avoid allocating a keyspace for a namespace that does not exist
        if not (create and self._auto_create) and not await self._registry.exists(ns):
            raise NotFound(f"Database '{ns}' not found")
        return await self._registry.keyspace(ns)

    async def create(self, ns: str, key: str, value: Any) -> Document:
        """
        Store a new document.

        Raises:
            InvalidName: If ns is malformed.
            InvalidKey: If key is empty, too long or contains NUL.
            InvalidValue: If value is not JSON-serializable.
            NotFound: If ns does not exist and auto-create is off.
            DuplicateKey: If key already holds a value in ns.
        """
        encoded_key = self._encode_key(key)
        data = encode_value(value)
        keyspace = await self._keyspace(ns, create=True)

        def _create(txn: Transaction) -> None:
            if not self._registry.is_registered(txn, ns):
                if not self._auto_create:
                    raise NotFound(f"Database '{ns}' not found")
                self._registry.register(txn, ns)
                logger.info(f"Auto-created database {ns}")

            if not txn.put(keyspace, encoded_key, data, overwrite=False):
                raise DuplicateKey(f"Document with key '{key}' already exists")

        await self._backend.write(_create)
        return Document(key=key, value=value)

    async def get(self, ns: str, key: str) -> Document:
        """
        Raises:
            NotFound: If the namespace or the document does not exist.
        """
        encoded_key = self._encode_key(key)
        keyspace = await self._keyspace(ns)

        def _get(txn: Transaction) -> Document:
            self._registry.require(txn, ns)
            data = txn.get(keyspace, encoded_key)
            if data is None:
                raise NotFound(f"Document with key '{key}' not found")
            return Document.from_record(encoded_key, data)

        return await self._backend.read(_get)

    async def update(self, ns: str, key: str, value: Any) -> Document:
        """
        Replace the value of an existing document.

        Raises:
            NotFound: If the namespace or the document does not exist.
        """
        encoded_key = self._encode_key(key)
        data = encode_value(value)
        keyspace = await self._keyspace(ns)

        def _update(txn: Transaction) -> None:
            self._registry.require(txn, ns)
            if txn.get(keyspace, encoded_key) is None:
                raise NotFound(f"Document with key '{key}' not found")
            txn.put(keyspace, encoded_key, data)

        await self._backend.write(_update)
        return Document(key=key, value=value)

    async def delete(self, ns: str, key: str) -> None:
        """
        Raises:
            NotFound: If the namespace or the document does not exist.
        """
        encoded_key = self._encode_key(key)
        keyspace = await self._keyspace(ns)

        def _delete(txn: Transaction) -> None:
            self._registry.require(txn, ns)
            if not txn.delete(keyspace, encoded_key):
                raise NotFound(f"Document with key '{key}' not found")

        await self._backend.write(_delete)

    async def count(self, ns: str) -> int:
        keyspace = await self._keyspace(ns)

        def _count(txn: Transaction) -> int:
            self._registry.require(txn, ns)
            return txn.count(keyspace)

        return await self._backend.read(_count)

    async def list(self, ns: str, options: QueryOptions | None = None) -> list[Document]:
        """
        List documents in ascending key order.

        The scan stops once options.limit results are produced; callers
        paginate by passing the last returned key as the next start_key.

        Raises:
            NotFound: If the namespace does not exist.
        """
        key_range = plan(options or QueryOptions())
        keyspace = await self._keyspace(ns)

        def _scan(txn: Transaction) -> list[tuple[bytes, bytes]]:
            self._registry.require(txn, ns)
            return txn.scan(keyspace, key_range.start, key_range.end, key_range.limit)

        records = await self._backend.read(_scan)
        return [Document.from_record(key, data) for key, data in records]
