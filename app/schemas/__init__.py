"""Public schema exports."""

from .catalog import (
    CategoryOut,
    Pagination,
    ProducerOut,
    ProductListResponse,
    ProductOut,
    ProductQuery,
    ProductResponse,
    ResponseMeta,
    SortField,
    SortOrder,
)
from .common import ErrorBody, ErrorResponse
from .webhooks import WebhookAck, WebhookEventOut, WebhookEventResponse, WebhookPayload

__all__ = [
    "CategoryOut",
    "ErrorBody",
    "ErrorResponse",
    "Pagination",
    "ProducerOut",
    "ProductListResponse",
    "ProductOut",
    "ProductQuery",
    "ProductResponse",
    "ResponseMeta",
    "SortField",
    "SortOrder",
    "WebhookAck",
    "WebhookEventOut",
    "WebhookEventResponse",
    "WebhookPayload",
]
