"""
LMDB binding - the physical storage environment behind every keyspace.
"""

import asyncio
import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import lmdb

from docstore.interfaces.backend import KeyValueBackend, Transaction
from docstore.models.exceptions import EngineFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LmdbTransaction(Transaction):
    """Transaction adapter over an lmdb.Transaction."""

    def __init__(self, txn: lmdb.Transaction) -> None:
        self._txn = txn

    def get(self, keyspace: Any, key: bytes) -> bytes | None:
        return self._txn.get(key, db=keyspace)

    def put(self, keyspace: Any, key: bytes, value: bytes, overwrite: bool = True) -> bool:
        return self._txn.put(key, value, overwrite=overwrite, db=keyspace)

    def delete(self, keyspace: Any, key: bytes) -> bool:
        return self._txn.delete(key, db=keyspace)

    def clear(self, keyspace: Any) -> None:
        # delete=False empties the named database but keeps its handle valid
        self._txn.drop(keyspace, delete=False)

    def scan(
        self,
        keyspace: Any,
        start: bytes | None = None,
        end: bytes | None = None,
        limit: int | None = None,
    ) -> list[tuple[bytes, bytes]]:
        results: list[tuple[bytes, bytes]] = []
        if limit is not None and limit <= 0:
            return results

        with self._txn.cursor(db=keyspace) as cursor:
            # Position cursor at first key >= start
            if start is not None:
                positioned = cursor.set_range(start)
            else:
                positioned = cursor.first()
            if not positioned:
                return results

            for key, value in cursor.iternext(keys=True, values=True):
                if end is not None and key >= end:
                    break
                results.append((key, value))
                if limit is not None and len(results) >= limit:
                    break

        return results

    def count(self, keyspace: Any) -> int:
        return int(self._txn.stat(keyspace)["entries"])


class LmdbBackend(KeyValueBackend):
    """
    Owns one LMDB environment and the cache of opened named databases.

    Blocking LMDB calls run in the default thread pool so the event loop is
    never stalled. LMDB itself provides single-writer/multi-reader
    concurrency: every write() is one serialized write transaction and every
    read() sees a point-in-time snapshot.
    """

    # Default map size (1GB); the file grows lazily up to this bound
    DEFAULT_MAP_SIZE = 1024 * 1024 * 1024

    # Default upper bound on named databases (namespaces + internal keyspaces)
    DEFAULT_MAX_DBS = 1024

    def __init__(
        self,
        path: str,
        map_size: int = DEFAULT_MAP_SIZE,
        max_dbs: int = DEFAULT_MAX_DBS,
    ) -> None:
        """
        Args:
            path: Directory holding the LMDB data and lock files.
            map_size: Maximum size of the memory map in bytes.
            max_dbs: Maximum number of named databases.
        """
        if not path or not path.strip():
            raise ValueError("path cannot be empty")
        if map_size <= 0:
            raise ValueError(f"map_size must be positive, got {map_size}")
        if max_dbs <= 0:
            raise ValueError(f"max_dbs must be positive, got {max_dbs}")

        self._path = os.path.abspath(path)
        self._map_size = map_size
        self._max_dbs = max_dbs
        self._env: lmdb.Environment | None = None

        # Opened named databases, shared by all request handlers
        self._handles: dict[str, Any] = {}
        self._handles_lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def max_key_size(self) -> int:
        return self._require_env().max_key_size()

    def _require_env(self) -> lmdb.Environment:
        if self._env is None:
            raise EngineFailure("Storage engine is not open")
        return self._env

    async def open(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._open_sync)

    def _open_sync(self) -> None:
        if self._env is not None:
            return

        Path(self._path).mkdir(parents=True, exist_ok=True)
        try:
            self._env = lmdb.open(
                self._path,
                map_size=self._map_size,
                max_dbs=self._max_dbs,
                subdir=True,
                lock=True,
            )
        except lmdb.Error as e:
            raise EngineFailure(f"Failed to open LMDB at {self._path}: {e}") from e

        logger.info(f"LMDB initialized at {self._path}")

    async def close(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._close_sync)

    def _close_sync(self) -> None:
        if self._env is None:
            return

        with self._handles_lock:
            self._handles.clear()
            env, self._env = self._env, None

        try:
            env.sync(True)
        finally:
            env.close()
        logger.info(f"LMDB closed at {self._path}")

    async def keyspace(self, name: str) -> Any:
        # Fast path without a thread hop
        with self._handles_lock:
            handle = self._handles.get(name)
        if handle is not None:
            return handle

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._keyspace_sync, name)

    def _keyspace_sync(self, name: str) -> Any:
        with self._handles_lock:
            handle = self._handles.get(name)
            if handle is not None:
                return handle

            env = self._require_env()
            try:
                handle = env.open_db(name.encode("utf-8"), create=True)
            except lmdb.Error as e:
                raise EngineFailure(f"Failed to open keyspace '{name}': {e}") from e

            self._handles[name] = handle
            logger.debug(f"Opened keyspace {name}")
            return handle

    async def read(self, fn: Callable[[Transaction], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._run, fn, False)

    async def write(self, fn: Callable[[Transaction], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._run, fn, True)

    def _run(self, fn: Callable[[Transaction], T], write: bool) -> T:
        env = self._require_env()
        try:
            # Context manager commits on success, aborts if fn raises
            with env.begin(write=write) as txn:
                return fn(LmdbTransaction(txn))
        except lmdb.Error as e:
            logger.error(f"LMDB {'write' if write else 'read'} failed: {e}")
            raise EngineFailure(str(e)) from e

    def info(self) -> dict[str, Any]:
        """Environment statistics, reported by Store.stats()."""
        env = self._require_env()
        info = env.info()
        return {
            "path": self._path,
            "map_size": info.get("map_size"),
            "last_txnid": info.get("last_txnid"),
            "max_key_size": env.max_key_size(),
        }
