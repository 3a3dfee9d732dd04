"""
Blob Store Adapter Tests

Verifies MemoryBlobStore semantics and the RedisBlobStore key namespacing
and JSON encoding with a mocked redis.asyncio client.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from shared_notes.core.config import Settings
from shared_notes.storage.blob_store import (
    MemoryBlobStore,
    RedisBlobStore,
    create_blob_store,
)

# ---------------------------------------------------------------------------
# MemoryBlobStore
# ---------------------------------------------------------------------------


class TestMemoryBlobStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        assert await MemoryBlobStore().get("nope") is None

    @pytest.mark.asyncio
    async def test_values_are_copied(self) -> None:
        store = MemoryBlobStore()
        value = ["a", "b"]

        await store.set("index", value)
        value.append("c")

        assert await store.get("index") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self) -> None:
        store = MemoryBlobStore()
        await store.set("k", 1)

        await store.delete("k")
        await store.delete("k")

        assert await store.get("k") is None
        assert store.keys() == []


# ---------------------------------------------------------------------------
# RedisBlobStore
# ---------------------------------------------------------------------------


@pytest.fixture
def redis_client() -> AsyncMock:
    """Mocked redis.asyncio.Redis."""
    return AsyncMock()


class TestRedisBlobStore:
    """Tests for the Redis adapter with a mocked client."""

    @pytest.mark.asyncio
    async def test_set_namespaces_and_encodes(self, redis_client: AsyncMock) -> None:
        store = RedisBlobStore(redis_client, namespace="ns")

        await store.set("note:1", {"id": "1"})

        redis_client.set.assert_awaited_once_with("ns:note:1", json.dumps({"id": "1"}))

    @pytest.mark.asyncio
    async def test_get_decodes(self, redis_client: AsyncMock) -> None:
        redis_client.get.return_value = '["a", "b"]'
        store = RedisBlobStore(redis_client, namespace="ns")

        assert await store.get("notes:index") == ["a", "b"]
        redis_client.get.assert_awaited_once_with("ns:notes:index")

    @pytest.mark.asyncio
    async def test_get_missing(self, redis_client: AsyncMock) -> None:
        redis_client.get.return_value = None

        assert await RedisBlobStore(redis_client).get("x") is None

    @pytest.mark.asyncio
    async def test_get_unreadable_value(self, redis_client: AsyncMock) -> None:
        redis_client.get.return_value = "{broken"

        assert await RedisBlobStore(redis_client).get("x") is None

    @pytest.mark.asyncio
    async def test_delete(self, redis_client: AsyncMock) -> None:
        await RedisBlobStore(redis_client, namespace="ns").delete("note:1")

        redis_client.delete.assert_awaited_once_with("ns:note:1")

    @pytest.mark.asyncio
    async def test_empty_namespace_uses_raw_keys(self, redis_client: AsyncMock) -> None:
        await RedisBlobStore(redis_client, namespace="").set("k", 1)

        redis_client.set.assert_awaited_once_with("k", "1")

    @pytest.mark.asyncio
    async def test_ping_failure(self, redis_client: AsyncMock) -> None:
        redis_client.ping.side_effect = RedisConnectionError("down")

        assert await RedisBlobStore(redis_client).ping() is False

    @pytest.mark.asyncio
    async def test_close(self, redis_client: AsyncMock) -> None:
        await RedisBlobStore(redis_client).close()

        redis_client.aclose.assert_awaited_once()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateBlobStore:
    """Tests for backend selection."""

    def test_memory(self) -> None:
        assert isinstance(create_blob_store(Settings(STORE_BACKEND="memory")), MemoryBlobStore)

    def test_redis(self) -> None:
        store = create_blob_store(Settings(STORE_BACKEND="Redis", REDIS_HOST="localhost"))
        assert isinstance(store, RedisBlobStore)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown STORE_BACKEND"):
            create_blob_store(Settings(STORE_BACKEND="dynamo"))
