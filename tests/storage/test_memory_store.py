#!/usr/bin/env python3
"""
Tests for the in-memory store adapter.
"""

import pytest

from kvbench.storage import MemoryStoreAdapter, create_adapter
from kvbench.evaluation.config import BackendSettings


class TestMemoryStoreAdapter:
    """Test MemoryStoreAdapter behaviour."""

    def setup_method(self):
        self.store = MemoryStoreAdapter()

    @pytest.mark.asyncio
    async def test_put_get(self):
        await self.store.put(b"k1", b"v1")

        assert await self.store.get(b"k1") == b"v1"
        assert await self.store.get(b"k2") is None

    @pytest.mark.asyncio
    async def test_overwrite(self):
        await self.store.put(b"k1", b"v1")
        await self.store.put(b"k1", b"v2")

        assert await self.store.get(b"k1") == b"v2"
        assert len(self.store.storage) == 1

    @pytest.mark.asyncio
    async def test_multi_get_positional(self):
        await self.store.multi_put([(b"a", b"1"), (b"b", b"2")])

        assert await self.store.multi_get([b"b", b"missing", b"a", b"b"]) == [b"2", None, b"1", b"2"]
        assert await self.store.multi_get([]) == []

    @pytest.mark.asyncio
    async def test_delete(self):
        await self.store.put(b"k1", b"v1")
        await self.store.delete(b"k1")
        await self.store.delete(b"never-there")

        assert await self.store.get(b"k1") is None
        assert self.store.delete_count == 2

    @pytest.mark.asyncio
    async def test_health_check(self):
        await self.store.put(b"k1", b"v1")
        await self.store.get(b"k1")

        health = await self.store.health_check()

        assert health.is_healthy
        assert health.backend_name == "memory"
        assert health.details["storage_count"] == 1
        assert health.details["get_count"] == 1

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with MemoryStoreAdapter() as store:
            await store.put(b"k", b"v")
            assert await store.get(b"k") == b"v"

    @pytest.mark.asyncio
    async def test_latency(self):
        store = MemoryStoreAdapter(latency_seconds=0.001)
        await store.put(b"k", b"v")

        assert await store.get(b"k") == b"v"


class TestCreateAdapter:
    """Test adapter construction from settings."""

    def test_memory(self):
        assert isinstance(create_adapter(BackendSettings(type="memory")), MemoryStoreAdapter)

    def test_sqlite(self):
        adapter = create_adapter(BackendSettings(type="sqlite", sqlite={"path": "bench.db"}))

        assert adapter.backend_name == "sqlite"
        assert adapter.settings.path == "bench.db"

    def test_redis(self):
        adapter = create_adapter(BackendSettings(type="redis", redis={"host": "cache", "port": 6380}))

        assert adapter.backend_name == "redis"
        assert adapter.settings.host == "cache"
        assert adapter.client is None
