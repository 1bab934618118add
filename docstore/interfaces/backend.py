"""
Abstract storage-engine binding used by the namespace, document and
credential stores.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


class Transaction(ABC):
    """
    A single read or write transaction against the storage engine.

    Keyspace handles are obtained from KeyValueBackend.keyspace() before the
    transaction starts. Read transactions observe a consistent snapshot;
    write transactions commit atomically across every keyspace they touch.
    """

    @abstractmethod
    def get(self, keyspace: Any, key: bytes) -> bytes | None:
        """
        Return the value stored under key, or None if absent.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def put(self, keyspace: Any, key: bytes, value: bytes, overwrite: bool = True) -> bool:
        """
        Store value under key.

        Args:
            keyspace: Target keyspace handle.
            key: Record key.
            value: Record value.
            overwrite: If False, leave an existing record untouched.

        Returns:
            True if the value was stored, False if overwrite=False and the
            key already existed.
        """
        pass

    @abstractmethod
    def delete(self, keyspace: Any, key: bytes) -> bool:
        """
        Remove the record stored under key.

        Returns:
            True if the key was found and removed, False otherwise.
        """
        pass

    @abstractmethod
    def clear(self, keyspace: Any) -> None:
        """Remove every record of the keyspace, keeping the keyspace itself."""
        pass

    @abstractmethod
    def scan(
        self,
        keyspace: Any,
        start: bytes | None = None,
        end: bytes | None = None,
        limit: int | None = None,
    ) -> list[tuple[bytes, bytes]]:
        """
        Return records in ascending key order within [start, end).

        Args:
            keyspace: Keyspace handle.
            start: Start key (inclusive). If None, starts from the beginning.
            end: End key (exclusive). If None, iterates to the end.
            limit: Stop after this many records. None means unbounded.

        Returns:
            List of (key, value) tuples.
        """
        pass

    @abstractmethod
    def count(self, keyspace: Any) -> int:
        """Return the number of records in the keyspace. O(1)."""
        pass


class KeyValueBackend(ABC):
    """
    An embedded ordered key-value engine with named keyspaces.

    Implementations own the engine handle and a cache of opened keyspaces.
    """

    @property
    @abstractmethod
    def max_key_size(self) -> int:
        """Largest key, in bytes, the engine accepts."""
        pass

    @abstractmethod
    async def open(self) -> None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    @abstractmethod
    async def keyspace(self, name: str) -> Any:
        """Open (creating if needed) and cache the handle for a named keyspace."""
        pass

    @abstractmethod
    async def read(self, fn: Callable[[Transaction], T]) -> T:
        """Run fn inside a read-only snapshot transaction and return its result."""
        pass

    @abstractmethod
    async def write(self, fn: Callable[[Transaction], T]) -> T:
        """
        Run fn inside a write transaction.

        The transaction commits when fn returns and aborts when fn raises,
        re-raising the exception.
        """
        pass
