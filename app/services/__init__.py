"""Service layer exports."""

from .cache import KeyValueCache
from .catalog import CatalogService
from .health import HealthProbe
from .idempotency import IdempotencyLedger
from .locks import DistributedLock
from .rate_limit import RateLimiter, RateLimitStatus
from .token_broker import TokenBroker
from .token_cipher import TokenCipherService
from .webhook_security import WebhookSignatureVerifier
from .webhooks import WebhookReceipt, WebhookService

__all__ = [
    "CatalogService",
    "DistributedLock",
    "HealthProbe",
    "IdempotencyLedger",
    "KeyValueCache",
    "RateLimitStatus",
    "RateLimiter",
    "TokenBroker",
    "TokenCipherService",
    "WebhookReceipt",
    "WebhookService",
    "WebhookSignatureVerifier",
]
