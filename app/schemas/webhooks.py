"""
Pydantic models for webhook ingress.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.tables import WebhookStatus


class WebhookPayload(BaseModel):
    """Body posted by webhook senders."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(..., alias="eventType", min_length=1, max_length=128)
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: float


class WebhookAck(BaseModel):
    acknowledged: bool = True
    duplicate: bool
    idempotency_key: str
    request_id: Optional[str] = None


class WebhookEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    idempotency_key: str
    event_type: str
    payload: Dict[str, Any]
    status: WebhookStatus
    attempts: int
    last_error: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class WebhookEventResponse(BaseModel):
    data: WebhookEventOut


__all__ = ["WebhookAck", "WebhookEventOut", "WebhookEventResponse", "WebhookPayload"]
