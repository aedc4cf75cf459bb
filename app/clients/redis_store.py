"""
Shared key-value store connection.

One Redis connection pool backs three capabilities: namespaced caching,
set-if-absent locking and the fast path of webhook deduplication. The store
owns the pool; capability views borrow it and never close it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import RedisSettings

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from app.services.cache import KeyValueCache
    from app.services.locks import DistributedLock

logger = logging.getLogger(__name__)

# Failures that mean "the store is unreachable or misbehaving" rather than a
# programming error in the caller.
STORE_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, TimeoutError)


class RedisStore:
    """Owns the Redis client and hands out narrow capability views."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: RedisSettings) -> "RedisStore":
        client = redis.from_url(
            settings.url,
            decode_responses=True,
            socket_timeout=settings.socket_timeout_seconds,
            socket_connect_timeout=settings.socket_timeout_seconds,
            max_connections=settings.max_connections,
        )
        return cls(client)

    @property
    def client(self) -> Any:
        return self._client

    def cache(self, name: str) -> "KeyValueCache":
        """Return a cache view whose keys are prefixed with ``name``."""
        from app.services.cache import KeyValueCache

        return KeyValueCache(self._client, name)

    def lock(self) -> "DistributedLock":
        """Return the set-if-absent lock view."""
        from app.services.locks import DistributedLock

        return DistributedLock(self._client)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except STORE_ERRORS as exc:
            logger.warning("Redis ping failed: %s", exc)
            return False

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["RedisStore", "STORE_ERRORS"]
