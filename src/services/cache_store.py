"""Ephemeral cache for user session records."""
import logging
import math
from datetime import timedelta
from typing import Protocol

from core.redis import RedisClient

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Key to serialized-value store with per-entry expiry."""

    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or None if absent or expired."""
        ...

    async def set(self, key: str, value: bytes, ttl: timedelta) -> bool:
        """Store a value that expires after `ttl`."""
        ...


def ttl_to_seconds(ttl: timedelta) -> int:
    """Convert a TTL to whole seconds for SETEX (rounded up, at least 1)."""
    return max(1, math.ceil(ttl.total_seconds()))


class RedisCacheStore:
    """
    CacheStore backed by the application's RedisClient.

    When Redis is disabled or unreachable the client reports every key as
    absent and drops writes, so the resolver falls through to the database.
    """

    def __init__(self, client: RedisClient) -> None:
        self._client = client

    async def get(self, key: str) -> bytes | None:
        return await self._client.get(key)

    async def set(self, key: str, value: bytes, ttl: timedelta) -> bool:
        stored = await self._client.setex(key, ttl_to_seconds(ttl), value)
        if not stored:
            logger.debug("session_cache_write_skipped", extra={"key": key})
        return stored
