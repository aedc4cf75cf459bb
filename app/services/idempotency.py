"""Exactly-once acceptance of webhook events keyed by idempotency key."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.clients.webhook_store import WebhookEventStore
from app.models.tables import WebhookEvent
from app.services.cache import KeyValueCache

logger = logging.getLogger(__name__)


class IdempotencyLedger:
    """
    Cache-fronted dedup ledger.

    The cache answers the common repeat quickly; the durable store, through its
    unique constraint on the key, is the source of truth.
    """

    def __init__(self, cache: KeyValueCache, store: WebhookEventStore, *, ttl_seconds: int = 86400) -> None:
        self._cache = cache
        self._store = store
        self._ttl = ttl_seconds

    async def is_duplicate(self, idempotency_key: str) -> bool:
        if await self._cache.exists(idempotency_key):
            return True
        if await self._store.exists(idempotency_key):
            await self._cache.set(idempotency_key, True, ttl_seconds=self._ttl)
            return True
        return False

    async def record(self, idempotency_key: str, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Persist the event as pending.

        Returns ``True`` if this call created the record and ``False`` if the key
        was already stored; either way the key is marked seen in the cache.
        """
        created = await self._store.insert(
            idempotency_key=idempotency_key, event_type=event_type, payload=payload
        )
        await self._cache.set(idempotency_key, True, ttl_seconds=self._ttl)
        return created

    async def find(self, idempotency_key: str) -> Optional[WebhookEvent]:
        return await self._store.get_by_key(idempotency_key)


__all__ = ["IdempotencyLedger"]
