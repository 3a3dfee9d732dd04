"""
Blob Store Adapters

Key/value persistence behind the note repository. Values are JSON-compatible
Python objects; adapters own serialization.

Adapters:
    - RedisBlobStore: production backend (redis.asyncio), keys namespaced.
    - MemoryBlobStore: in-process dict for tests and local development.

Both offer strong read-after-write consistency for a single key and no
multi-key transactions.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared_notes.core.config import Settings

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Opaque async key/value service: ``get``, ``set``, ``delete``."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the decoded value for ``key``, or None if absent or unreadable."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting a missing key is a no-op."""

    async def ping(self) -> bool:
        """Connectivity probe used at startup."""
        return True

    async def close(self) -> None:
        """Release connections. Safe to call more than once."""


class MemoryBlobStore(BlobStore):
    """
    Dict-backed store.

    Values are kept JSON-encoded so callers never share mutable state with
    the store, matching the copy semantics of a remote backend.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Stored keys, for inspection in tests."""
        return list(self._data)


class RedisBlobStore(BlobStore):
    """
    Redis-backed store.

    Every key is prefixed with ``<namespace>:`` so several deployments can
    share one Redis database.

    Usage::

        store = RedisBlobStore.from_url("redis://localhost:6379/0")
        await store.set("note:abc", {"id": "abc"})
        note = await store.get("note:abc")
    """

    def __init__(self, client: redis.Redis, namespace: str = "simple-notes") -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "simple-notes") -> RedisBlobStore:
        """Build a store from a redis:// URL (text mode, UTF-8)."""
        client = redis.from_url(url, decode_responses=True)
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable value at key '%s'", key)
            return None

    async def set(self, key: str, value: Any) -> None:
        await self._client.set(self._key(key), json.dumps(value))

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def ping(self) -> bool:
        try:
            await self._client.ping()
            return True
        except RedisError as e:
            logger.error("Redis connection error: %s", e)
            return False

    async def close(self) -> None:
        await self._client.aclose()


def create_blob_store(config: Settings) -> BlobStore:
    """
    Build the store selected by ``STORE_BACKEND``.

    Raises:
        ValueError: If the backend name is not recognised.
    """
    backend = config.STORE_BACKEND.lower()
    if backend == "memory":
        logger.info("Using in-memory blob store (data is not persisted)")
        return MemoryBlobStore()
    if backend == "redis":
        logger.info(
            "Using Redis blob store (%s:%s, namespace=%s)",
            config.REDIS_HOST,
            config.REDIS_PORT,
            config.STORE_NAMESPACE,
        )
        return RedisBlobStore.from_url(config.REDIS_URL, namespace=config.STORE_NAMESPACE)
    raise ValueError(f"Unknown STORE_BACKEND: '{config.STORE_BACKEND}'")
