"""Fixed-window request limiting over the shared key-value store."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from app.clients.redis_store import STORE_ERRORS
from app.core.config import RateLimitSettings
from app.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int
    reset_at: int

    def headers(self) -> dict:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


class RateLimiter:
    """Count hits per client per window; the first hit of a window sets its expiry."""

    def __init__(
        self,
        client: Any,
        settings: RateLimitSettings,
        *,
        namespace: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._settings = settings
        self._namespace = namespace
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    async def hit(self, identity: str) -> RateLimitStatus:
        """Record one request for ``identity``; raise ``RateLimitExceeded`` past the limit."""
        limit = self._settings.requests_per_window
        window = self._settings.window_seconds
        now = int(self._clock())
        window_start = now - now % window
        reset_at = window_start + window
        key = f"{self._namespace}:{identity}:{window_start}"

        try:
            count = await self._client.incr(key)
            if count == 1:
                await self._client.expire(key, window)
        except STORE_ERRORS as exc:
            logger.error("Rate limit store error, allowing request", extra={"key": key, "error": str(exc)})
            return RateLimitStatus(limit=limit, remaining=limit, reset_at=reset_at)

        if count > limit:
            logger.warning("Rate limit exceeded", extra={"identity": identity, "count": count})
            raise RateLimitExceeded(retry_after=max(reset_at - now, 1))
        return RateLimitStatus(limit=limit, remaining=max(limit - count, 0), reset_at=reset_at)


__all__ = ["RateLimitStatus", "RateLimiter"]
