"""
Tests for the namespace registry.
"""

import asyncio

import pytest

from docstore.models.exceptions import AlreadyExists, InvalidName, NotFound


class TestNamespaceRegistry:
    """Create/delete/list of namespaces."""

    async def test_create_and_exists(self, registry):
        info = await registry.create("users")
        assert info.name == "users"
        assert await registry.exists("users")
        assert (await registry.info("users")).name == "users"

    async def test_create_duplicate(self, registry):
        await registry.create("users")
        with pytest.raises(AlreadyExists):
            await registry.create("users")

    async def test_concurrent_create_only_one_wins(self, registry):
        """Test that racing creates produce exactly one success."""
        results = await asyncio.gather(
            *(registry.create("race") for _ in range(10)), return_exceptions=True
        )
        assert sum(1 for r in results if not isinstance(r, Exception)) == 1
        assert all(isinstance(r, AlreadyExists) for r in results if isinstance(r, Exception))

    @pytest.mark.parametrize("name", ["__meta", "__system", "bad name", ""])
    async def test_create_invalid(self, registry, name):
        with pytest.raises(InvalidName):
            await registry.create(name)

    async def test_names_are_case_sensitive(self, registry):
        await registry.create("Users")
        await registry.create("users")
        assert await registry.list() == ["Users", "users"]

    async def test_list_sorted_regardless_of_creation_order(self, registry):
        for name in ("zeta", "alpha", "mid", "beta"):
            await registry.create(name)
        assert await registry.list() == ["alpha", "beta", "mid", "zeta"]

    async def test_list_empty(self, registry):
        assert await registry.list() == []

    async def test_delete(self, registry):
        await registry.create("users")
        await registry.delete("users")
        assert not await registry.exists("users")
        assert await registry.list() == []

    async def test_delete_missing(self, registry):
        with pytest.raises(NotFound):
            await registry.delete("ghost")

    async def test_info_missing(self, registry):
        with pytest.raises(NotFound):
            await registry.info("ghost")

    async def test_reserved_never_exists(self, registry):
        assert not await registry.exists("__meta")

    async def test_recreated_namespace_starts_empty(self, registry, backend):
        """Test that a stale keyspace from an earlier namespace is cleared on create."""
        ks = await registry.keyspace("reuse")
        await backend.write(lambda txn: txn.put(ks, b"stale", b"1"))

        await registry.create("reuse")
        assert await backend.read(lambda txn: txn.count(ks)) == 0
