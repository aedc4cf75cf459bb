"""
FastAPI routes for the marketplace gateway.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Header, Path, Query, Request, Response
from pydantic import ValidationError as PydanticValidationError

from app.core.config import AppSettings
from app.core.errors import ValidationError
from app.dependencies import (
    SettingsDependency,
    get_catalog_service,
    get_health_probe,
    get_rate_limiter,
    get_webhook_service,
)
from app.schemas import (
    ProductListResponse,
    ProductQuery,
    ProductResponse,
    SortField,
    SortOrder,
    WebhookAck,
    WebhookEventOut,
    WebhookEventResponse,
)

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _meta(request: Request) -> dict:
    return {"request_id": _request_id(request), "timestamp": datetime.now(timezone.utc)}


def _client_identity(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: Annotated[Any, Depends(get_rate_limiter)],
) -> None:
    """Count the request against its client's window and expose the counters."""
    if not limiter.enabled:
        return
    status = await limiter.hit(_client_identity(request))
    response.headers.update(status.headers())


router = APIRouter()
v1 = APIRouter(prefix="/v1", dependencies=[Depends(enforce_rate_limit)])


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: AppSettings = SettingsDependency) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/health/live", status_code=HTTPStatus.OK)
async def liveness() -> dict:
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(response: Response, probe: Annotated[Any, Depends(get_health_probe)]) -> dict:
    """Ready only when both the key-value store and the database answer."""
    report = await probe.readiness()
    if report["status"] != "ready":
        response.status_code = HTTPStatus.SERVICE_UNAVAILABLE
    return report


@v1.get("/products", response_model=ProductListResponse, response_model_by_alias=True)
async def list_products(
    request: Request,
    catalog: Annotated[Any, Depends(get_catalog_service)],
    limit: int = Query(20, ge=1, le=100),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page."),
    sort: SortField = Query("created_at"),
    order: SortOrder = Query("desc"),
    search: Optional[str] = Query(None, min_length=2, max_length=100),
    category: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
) -> dict:
    try:
        query = ProductQuery(
            limit=limit,
            cursor=cursor,
            sort=sort,
            order=order,
            search=search,
            category=category,
            min_price=min_price,
            max_price=max_price,
        )
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid query parameters",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc

    result = await catalog.list_products(query)
    return {**result, "meta": _meta(request)}


@v1.get("/products/{product_id}", response_model=ProductResponse, response_model_by_alias=True)
async def get_product(
    request: Request,
    catalog: Annotated[Any, Depends(get_catalog_service)],
    product_id: str = Path(..., min_length=1, max_length=64),
) -> dict:
    product = await catalog.get_product(product_id)
    return {"data": product, "meta": _meta(request)}


@v1.post("/webhooks", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    response: Response,
    webhooks: Annotated[Any, Depends(get_webhook_service)],
    signature: Optional[str] = Header(None, alias="X-Webhook-Signature"),
    timestamp: Optional[str] = Header(None, alias="X-Webhook-Timestamp"),
    idempotency_key: Optional[str] = Header(None, alias="X-Idempotency-Key"),
) -> WebhookAck:
    """Authenticate the raw body, then store the event unless its key was seen."""
    body = await request.body()
    receipt = await webhooks.receive(
        body,
        signature=signature,
        timestamp=timestamp,
        idempotency_key=idempotency_key,
    )
    response.status_code = HTTPStatus.OK if receipt.duplicate else HTTPStatus.ACCEPTED
    return WebhookAck(
        duplicate=receipt.duplicate,
        idempotency_key=receipt.idempotency_key,
        request_id=_request_id(request),
    )


@v1.get("/webhooks/events/{idempotency_key}", response_model=WebhookEventResponse)
async def get_webhook_event(
    webhooks: Annotated[Any, Depends(get_webhook_service)],
    idempotency_key: str = Path(..., min_length=1, max_length=255),
) -> dict:
    event = await webhooks.get_event(idempotency_key)
    return {"data": WebhookEventOut.model_validate(event)}


router.include_router(v1)

__all__ = ["router"]
