"""
Webhook ingestion: authenticate, deduplicate, persist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import NotFound, ValidationError
from app.models.tables import WebhookEvent
from app.schemas.webhooks import WebhookPayload
from app.services.idempotency import IdempotencyLedger
from app.services.webhook_security import WebhookSignatureVerifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookReceipt:
    idempotency_key: str
    duplicate: bool


class WebhookService:
    """Accept each webhook event at most once."""

    def __init__(self, verifier: WebhookSignatureVerifier, ledger: IdempotencyLedger) -> None:
        self._verifier = verifier
        self._ledger = ledger

    async def receive(
        self,
        body: bytes,
        *,
        signature: Optional[str],
        timestamp: Optional[str],
        idempotency_key: Optional[str],
    ) -> WebhookReceipt:
        """
        Authenticate ``body`` and store it unless its key was seen before.

        Authentication runs over the raw bytes before anything is parsed or
        looked up, so a forged request never reaches the ledger.
        """
        self._verifier.verify(body, signature, timestamp)

        key = (idempotency_key or "").strip()
        if not key:
            raise ValidationError("Missing X-Idempotency-Key header")
        if len(key) > 255:
            raise ValidationError("X-Idempotency-Key must be at most 255 characters")

        try:
            payload = WebhookPayload.model_validate_json(body)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid webhook payload",
                details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
            ) from exc

        if await self._ledger.is_duplicate(key):
            logger.info("Duplicate webhook ignored", extra={"idempotency_key": key, "event_type": payload.event_type})
            return WebhookReceipt(idempotency_key=key, duplicate=True)

        created = await self._ledger.record(key, payload.event_type, payload.model_dump(mode="json", by_alias=True))
        if not created:
            logger.info("Duplicate webhook lost insert race", extra={"idempotency_key": key})
            return WebhookReceipt(idempotency_key=key, duplicate=True)

        logger.info("Webhook stored", extra={"idempotency_key": key, "event_type": payload.event_type})
        return WebhookReceipt(idempotency_key=key, duplicate=False)

    async def get_event(self, idempotency_key: str) -> WebhookEvent:
        event = await self._ledger.find(idempotency_key)
        if event is None:
            raise NotFound("Webhook event")
        return event


__all__ = ["WebhookReceipt", "WebhookService"]
