"""Key/value stores with per-entry TTL backing the price cache."""
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """String key/value store with per-entry expiry.

    Values are opaque strings (JSON). A read of an expired or unknown key is a
    miss (None); backends never raise on a miss.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value for key, or None when missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Store value under key, replacing any previous one. Returns success."""

    async def close(self) -> None:
        """Release connections. Override if the backend holds any."""


class MemoryCacheBackend(CacheBackend):
    """In-process cache keyed by string with monotonic-clock expiry.

    Each set() swaps the whole (expires_at, value) tuple, so concurrent readers
    see either the old value or the new one, never a partial write.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize empty cache.

        Args:
            clock: Seconds source used for expiry; injectable for tests.
        """
        self._clock = clock
        self._entries: dict[str, tuple[float | None, str]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        expires_at = self._clock() + ttl if ttl else None
        self._entries[key] = (expires_at, value)
        return True


class RedisCacheBackend(CacheBackend):
    """Redis-backed cache shared between processes.

    Connection or command errors are logged and reported as a miss (reads) or
    a failed write, so the read path keeps serving fallback data.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(key)
        except RedisError as exc:
            logger.warning("Redis GET failed for %s: %s", key, exc)
            return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        try:
            await self._redis.set(key, value, ex=ttl or None)
            return True
        except RedisError as exc:
            logger.warning("Redis SET failed for %s: %s", key, exc)
            return False

    async def close(self) -> None:
        await self._redis.aclose()


def create_cache_backend(redis_url: str) -> CacheBackend:
    """Redis when a URL is configured, in-process otherwise."""
    if redis_url:
        logger.info("Price cache backed by Redis")
        return RedisCacheBackend.from_url(redis_url)
    return MemoryCacheBackend()
