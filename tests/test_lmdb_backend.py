"""
Tests for the LMDB binding.
"""

import asyncio

import pytest
import pytest_asyncio

from docstore.engine.lmdb_backend import LmdbBackend
from docstore.models.exceptions import EngineFailure


class TestLmdbBackendLifecycle:
    """Open/close behaviour."""

    def test_rejects_empty_path(self):
        with pytest.raises(ValueError):
            LmdbBackend("")

    def test_rejects_bad_sizes(self, temp_dir):
        with pytest.raises(ValueError):
            LmdbBackend(temp_dir, map_size=0)
        with pytest.raises(ValueError):
            LmdbBackend(temp_dir, max_dbs=0)

    async def test_use_before_open(self, temp_dir):
        """Test that transactions fail cleanly on a closed environment."""
        backend = LmdbBackend(temp_dir)
        with pytest.raises(EngineFailure):
            await backend.read(lambda txn: None)

    async def test_data_survives_reopen(self, temp_dir):
        """Test that committed writes are durable across close/open."""
        backend = LmdbBackend(temp_dir, map_size=16 * 1024 * 1024)
        await backend.open()
        ks = await backend.keyspace("things")
        await backend.write(lambda txn: txn.put(ks, b"k", b"v"))
        await backend.close()

        reopened = LmdbBackend(temp_dir, map_size=16 * 1024 * 1024)
        await reopened.open()
        try:
            ks = await reopened.keyspace("things")
            assert await reopened.read(lambda txn: txn.get(ks, b"k")) == b"v"
        finally:
            await reopened.close()

    async def test_close_is_idempotent(self, backend):
        await backend.close()
        await backend.close()

    async def test_info(self, backend):
        info = backend.info()
        assert info["path"] == backend.path
        assert info["max_key_size"] == backend.max_key_size


class TestLmdbTransactions:
    """Transaction semantics."""

    async def test_put_without_overwrite(self, backend):
        """Test that overwrite=False refuses to replace an existing key."""
        ks = await backend.keyspace("ks")
        assert await backend.write(lambda txn: txn.put(ks, b"k", b"1", overwrite=False))
        assert not await backend.write(lambda txn: txn.put(ks, b"k", b"2", overwrite=False))
        assert await backend.read(lambda txn: txn.get(ks, b"k")) == b"1"

    async def test_delete_reports_presence(self, backend):
        ks = await backend.keyspace("ks")
        await backend.write(lambda txn: txn.put(ks, b"k", b"v"))
        assert await backend.write(lambda txn: txn.delete(ks, b"k"))
        assert not await backend.write(lambda txn: txn.delete(ks, b"k"))

    async def test_failed_write_is_rolled_back(self, backend):
        """Test that an exception inside write() aborts the whole transaction."""
        ks = await backend.keyspace("ks")

        def _fail(txn):
            txn.put(ks, b"a", b"1")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await backend.write(_fail)
        assert await backend.read(lambda txn: txn.get(ks, b"a")) is None

    async def test_keyspaces_are_isolated(self, backend):
        one = await backend.keyspace("one")
        two = await backend.keyspace("two")
        await backend.write(lambda txn: txn.put(one, b"k", b"1"))
        assert await backend.read(lambda txn: txn.get(two, b"k")) is None

    async def test_keyspace_handle_cached(self, backend):
        assert await backend.keyspace("ks") is await backend.keyspace("ks")

    async def test_clear_and_count(self, backend):
        ks = await backend.keyspace("ks")

        def _fill(txn):
            for i in range(5):
                txn.put(ks, f"k{i}".encode(), b"v")

        await backend.write(_fill)
        assert await backend.read(lambda txn: txn.count(ks)) == 5
        await backend.write(lambda txn: txn.clear(ks))
        assert await backend.read(lambda txn: txn.count(ks)) == 0

    async def test_concurrent_writers(self, backend):
        """Test that concurrent writes through the thread pool all land."""
        ks = await backend.keyspace("ks")
        await asyncio.gather(
            *(backend.write(lambda txn, i=i: txn.put(ks, f"k{i:03d}".encode(), b"v")) for i in range(50))
        )
        assert await backend.read(lambda txn: txn.count(ks)) == 50


class TestLmdbScan:
    """Ordered range scans."""

    @pytest_asyncio.fixture
    async def filled(self, backend):
        ks = await backend.keyspace("ks")

        def _fill(txn):
            for key in (b"a", b"b", b"c", b"d", b"e"):
                txn.put(ks, key, key.upper())

        await backend.write(_fill)
        return backend, ks

    async def test_full_scan_ordered(self, filled):
        backend, ks = filled
        records = await backend.read(lambda txn: txn.scan(ks))
        assert [k for k, _ in records] == [b"a", b"b", b"c", b"d", b"e"]
        assert records[0] == (b"a", b"A")

    async def test_start_inclusive_end_exclusive(self, filled):
        backend, ks = filled
        records = await backend.read(lambda txn: txn.scan(ks, b"b", b"d"))
        assert [k for k, _ in records] == [b"b", b"c"]

    async def test_start_between_keys(self, filled):
        backend, ks = filled
        records = await backend.read(lambda txn: txn.scan(ks, b"bb"))
        assert [k for k, _ in records] == [b"c", b"d", b"e"]

    async def test_limit(self, filled):
        backend, ks = filled
        records = await backend.read(lambda txn: txn.scan(ks, limit=2))
        assert [k for k, _ in records] == [b"a", b"b"]

    async def test_start_past_end(self, filled):
        backend, ks = filled
        assert await backend.read(lambda txn: txn.scan(ks, b"z")) == []

    async def test_empty_keyspace(self, backend):
        ks = await backend.keyspace("empty")
        assert await backend.read(lambda txn: txn.scan(ks)) == []
