"""Namespaced JSON cache over the shared key-value store."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from app.clients.redis_store import STORE_ERRORS

logger = logging.getLogger(__name__)


class KeyValueCache:
    """
    Get/set/delete helpers scoped to one logical cache.

    Store failures are logged and absorbed: reads degrade to a miss and writes
    to a no-op, so cache health never decides whether a request succeeds.
    """

    def __init__(self, client: Any, name: str) -> None:
        self._client = client
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def _key(self, key: str) -> str:
        return f"{self._name}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(self._key(key))
        except STORE_ERRORS as exc:
            logger.error("Cache get error", extra={"cache": self._name, "key": key, "error": str(exc)})
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry", extra={"cache": self._name, "key": key})
            return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as exc:
            logger.error("Cache value not serializable", extra={"cache": self._name, "key": key, "error": str(exc)})
            return
        try:
            if ttl_seconds:
                await self._client.set(self._key(key), serialized, ex=int(ttl_seconds))
            else:
                await self._client.set(self._key(key), serialized)
        except STORE_ERRORS as exc:
            logger.error("Cache set error", extra={"cache": self._name, "key": key, "error": str(exc)})

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except STORE_ERRORS as exc:
            logger.error("Cache delete error", extra={"cache": self._name, "key": key, "error": str(exc)})

    async def delete_pattern(self, pattern: str) -> None:
        """Delete every key of this cache matching a glob-style ``pattern``."""
        full_pattern = self._key(pattern)
        try:
            keys = [key async for key in self._client.scan_iter(match=full_pattern, count=500)]
            if keys:
                await self._client.delete(*keys)
        except STORE_ERRORS as exc:
            logger.error(
                "Cache delete pattern error",
                extra={"cache": self._name, "pattern": pattern, "error": str(exc)},
            )

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(self._key(key)))
        except STORE_ERRORS as exc:
            logger.error("Cache exists error", extra={"cache": self._name, "key": key, "error": str(exc)})
            return False


__all__ = ["KeyValueCache"]
