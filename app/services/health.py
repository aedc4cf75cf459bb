"""Readiness checks for the service's network dependencies."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from app.clients.database import Database
from app.clients.redis_store import RedisStore
from app.utils.circuit_breaker import CircuitBreaker


class HealthProbe:
    """Ping the key-value and relational stores concurrently."""

    def __init__(
        self,
        redis_store: RedisStore,
        database: Database,
        breaker: Optional[CircuitBreaker] = None,
        *,
        timeout_seconds: float = 3.0,
    ) -> None:
        self._redis = redis_store
        self._db = database
        self._breaker = breaker
        self._timeout = timeout_seconds

    async def _bounded(self, probe: Any) -> bool:
        try:
            return await asyncio.wait_for(probe, timeout=self._timeout)
        except asyncio.TimeoutError:
            return False

    async def readiness(self) -> Dict[str, Any]:
        redis_ok, database_ok = await asyncio.gather(
            self._bounded(self._redis.ping()),
            self._bounded(self._db.ping()),
        )
        report: Dict[str, Any] = {
            "status": "ready" if redis_ok and database_ok else "not ready",
            "checks": {
                "redis": "ok" if redis_ok else "unavailable",
                "database": "ok" if database_ok else "unavailable",
            },
        }
        if self._breaker is not None:
            report["circuit"] = self._breaker.snapshot()
        return report


__all__ = ["HealthProbe"]
