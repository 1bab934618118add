"""
File store - named buckets mapped to directories on the local filesystem.
"""

import asyncio
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Any

from docstore.models.exceptions import AlreadyExists, NotFound
from docstore.models.file_info import FileInfo
from docstore.models.query import DEFAULT_LIMIT, MAX_LIMIT
from docstore.models.validation import validate_file_key, validate_name

logger = logging.getLogger(__name__)

UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def safe_file_name(key: str) -> str:
    """Map a validated file key to its on-disk name inside the bucket."""
    return UNSAFE_KEY_CHARS.sub("_", key)


class FileStore:
    """
    Bucket/file storage rooted at a single directory.

    Every bucket is a directory directly under the root; every file is a flat
    entry inside its bucket. Blocking filesystem calls run in the default
    thread pool.
    """

    def __init__(self, root: str) -> None:
        if not root or not root.strip():
            raise ValueError("root cannot be empty")
        self._root = Path(os.path.abspath(root))

    @property
    def root(self) -> str:
        return str(self._root)

    @classmethod
    async def create(cls, root: str) -> "FileStore":
        store = cls(root)
        await store._run(store._root.mkdir, parents=True, exist_ok=True)
        logger.info(f"Storage initialized at {store.root}")
        return store

    async def _run(self, fn, *args, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    def _bucket_path(self, bucket: str) -> Path:
        validate_name(bucket, kind="Bucket")
        return self._root / bucket

    def _file_path(self, bucket: str, key: str) -> Path:
        validate_file_key(key)
        return self._bucket_path(bucket) / safe_file_name(key)

    async def create_bucket(self, bucket: str) -> None:
        """
        Raises:
            InvalidName: If the bucket name is malformed.
            AlreadyExists: If the bucket exists.
        """
        path = self._bucket_path(bucket)

        def _create() -> None:
            try:
                path.mkdir(parents=True, exist_ok=False)
            except FileExistsError:
                raise AlreadyExists(f"Bucket '{bucket}' already exists") from None

        await self._run(_create)
        logger.info(f"Created bucket {bucket}")

    async def delete_bucket(self, bucket: str) -> None:
        """Delete a bucket and all its files."""
        path = self._bucket_path(bucket)

        def _delete() -> None:
            if not path.is_dir():
                raise NotFound(f"Bucket '{bucket}' not found")
            shutil.rmtree(path)

        await self._run(_delete)
        logger.info(f"Deleted bucket {bucket}")

    async def list_buckets(self) -> list[str]:
        def _list() -> list[str]:
            if not self._root.is_dir():
                return []
            return sorted(entry.name for entry in self._root.iterdir() if entry.is_dir())

        return await self._run(_list)

    async def put_file(self, bucket: str, key: str, data: bytes) -> FileInfo:
        """Write a file, creating the bucket on demand."""
        path = self._file_path(bucket, key)

        def _put() -> FileInfo:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            return FileInfo.from_stat(key, path.stat())

        return await self._run(_put)

    async def get_file(self, bucket: str, key: str) -> tuple[FileInfo, bytes]:
        path = self._file_path(bucket, key)

        def _get() -> tuple[FileInfo, bytes]:
            if not path.is_file():
                raise NotFound(f"File '{key}' not found in bucket '{bucket}'")
            return FileInfo.from_stat(key, path.stat()), path.read_bytes()

        return await self._run(_get)

    async def delete_file(self, bucket: str, key: str) -> None:
        path = self._file_path(bucket, key)

        def _delete() -> None:
            try:
                path.unlink()
            except FileNotFoundError:
                raise NotFound(f"File '{key}' not found in bucket '{bucket}'") from None

        await self._run(_delete)

    async def list_files(
        self, bucket: str, prefix: str | None = None, limit: int = DEFAULT_LIMIT
    ) -> list[FileInfo]:
        """
        List files of a bucket sorted by key.

        Args:
            bucket: Bucket name.
            prefix: Only include keys starting with this string.
            limit: Maximum number of files (capped at 10000).

        Raises:
            NotFound: If the bucket does not exist.
        """
        path = self._bucket_path(bucket)
        limit = min(limit, MAX_LIMIT)

        def _list() -> list[FileInfo]:
            if not path.is_dir():
                raise NotFound(f"Bucket '{bucket}' not found")

            files = []
            for entry in sorted(path.iterdir(), key=lambda p: p.name):
                if not entry.is_file():
                    continue
                if prefix and not entry.name.startswith(prefix):
                    continue
                files.append(FileInfo.from_stat(entry.name, entry.stat()))
                if len(files) >= limit:
                    break
            return files

        return await self._run(_list)

    async def usage(self) -> dict[str, Any]:
        """Bucket count, file count and total bytes across all buckets."""

        def _usage() -> dict[str, Any]:
            buckets = files = size = 0
            if self._root.is_dir():
                for bucket in self._root.iterdir():
                    if not bucket.is_dir():
                        continue
                    buckets += 1
                    for entry in bucket.rglob("*"):
                        if entry.is_file():
                            files += 1
                            size += entry.stat().st_size
            return {"buckets": buckets, "totalFiles": files, "storageBytes": size}

        return await self._run(_usage)

    async def all_files(self) -> list[dict[str, Any]]:
        """Every file across buckets as {name, bucket, size}, sorted by name."""

        def _walk() -> list[dict[str, Any]]:
            found = []
            if not self._root.is_dir():
                return found
            for bucket in sorted(self._root.iterdir()):
                if not bucket.is_dir():
                    continue
                for entry in bucket.rglob("*"):
                    if entry.is_file():
                        found.append(
                            {
                                "name": entry.relative_to(bucket).as_posix(),
                                "bucket": bucket.name,
                                "size": entry.stat().st_size,
                            }
                        )
            found.sort(key=lambda f: f["name"])
            return found

        return await self._run(_walk)
