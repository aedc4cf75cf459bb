"""
Durable storage for accepted webhook events.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.clients.database import Database
from app.models.tables import WebhookEvent, WebhookStatus

logger = logging.getLogger(__name__)


class WebhookEventStore:
    """Insert and look up ``webhook_events`` rows by idempotency key."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def insert(self, *, idempotency_key: str, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Store a new pending event.

        Returns ``False`` when a row with the same idempotency key already
        exists; the unique constraint decides between racing writers.
        """
        try:
            async with self._db.session() as s:
                s.add(
                    WebhookEvent(
                        idempotency_key=idempotency_key,
                        event_type=event_type,
                        payload=payload,
                        status=WebhookStatus.PENDING,
                        attempts=0,
                    )
                )
        except IntegrityError:
            logger.info("Webhook insert hit existing key", extra={"idempotency_key": idempotency_key})
            return False
        return True

    async def get_by_key(self, idempotency_key: str) -> Optional[WebhookEvent]:
        stmt = select(WebhookEvent).where(WebhookEvent.idempotency_key == idempotency_key)
        async with self._db.session() as s:
            return (await s.execute(stmt)).scalar_one_or_none()

    async def exists(self, idempotency_key: str) -> bool:
        stmt = select(WebhookEvent.id).where(WebhookEvent.idempotency_key == idempotency_key)
        async with self._db.session() as s:
            return (await s.execute(stmt)).first() is not None


__all__ = ["WebhookEventStore"]
