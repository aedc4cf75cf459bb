"""
Composition root.

Every long-lived resource (connection pools, HTTP clients) is built here once
per process and closed here on shutdown; nothing else opens connections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.clients.catalog_store import CatalogStore
from app.clients.database import Database
from app.clients.external_api import ResilientClient, build_http_client
from app.clients.oauth import ClientCredentialsClient
from app.clients.redis_store import RedisStore
from app.clients.webhook_store import WebhookEventStore
from app.core.config import AppSettings
from app.services.catalog import CatalogService
from app.services.health import HealthProbe
from app.services.idempotency import IdempotencyLedger
from app.services.rate_limit import RateLimiter
from app.services.token_broker import TokenBroker
from app.services.token_cipher import TokenCipherService
from app.services.webhook_security import WebhookSignatureVerifier
from app.services.webhooks import WebhookService
from app.utils.circuit_breaker import CircuitBreaker
from app.utils.http import RetryConfig

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Explicitly constructed resources and the services built on them."""

    settings: AppSettings
    redis: RedisStore
    database: Database
    oauth_http: httpx.AsyncClient
    external_http: httpx.AsyncClient
    token_broker: TokenBroker
    external_api: ResilientClient
    catalog: CatalogService
    webhooks: WebhookService
    rate_limiter: RateLimiter
    health: HealthProbe

    @classmethod
    def create(
        cls,
        settings: AppSettings,
        *,
        redis_store: RedisStore | None = None,
        database: Database | None = None,
        oauth_http: httpx.AsyncClient | None = None,
        external_http: httpx.AsyncClient | None = None,
    ) -> "ServiceContainer":
        """Wire the object graph; pass resources explicitly to substitute them."""
        redis_store = redis_store or RedisStore.from_settings(settings.redis)
        database = database or Database.from_settings(settings.database)
        oauth_http = oauth_http or httpx.AsyncClient(timeout=settings.oauth.request_timeout_seconds)
        external_http = external_http or build_http_client(settings.external_api)

        cipher = None
        if settings.security.token_encryption_secret:
            cipher = TokenCipherService(secret=settings.security.token_encryption_secret)

        token_broker = TokenBroker(
            ClientCredentialsClient(settings.oauth, oauth_http),
            redis_store.cache("token"),
            redis_store.lock(),
            settings.oauth,
            token_cipher=cipher,
        )
        breaker = CircuitBreaker.from_settings("external-api", settings.circuit_breaker)
        external_api = ResilientClient(
            external_http,
            token_broker,
            breaker,
            RetryConfig.from_settings(settings.external_api),
            timeout_seconds=settings.external_api.timeout_seconds,
        )

        catalog = CatalogService(
            CatalogStore(database),
            redis_store.cache("cache:products"),
            list_ttl_seconds=settings.cache.product_list_ttl_seconds,
            item_ttl_seconds=settings.cache.product_item_ttl_seconds,
        )
        ledger = IdempotencyLedger(
            redis_store.cache("idempotency"),
            WebhookEventStore(database),
            ttl_seconds=settings.webhooks.idempotency_ttl_seconds,
        )
        webhooks = WebhookService(
            WebhookSignatureVerifier(
                settings.webhooks.secret,
                tolerance_seconds=settings.webhooks.timestamp_tolerance_seconds,
            ),
            ledger,
        )

        return cls(
            settings=settings,
            redis=redis_store,
            database=database,
            oauth_http=oauth_http,
            external_http=external_http,
            token_broker=token_broker,
            external_api=external_api,
            catalog=catalog,
            webhooks=webhooks,
            rate_limiter=RateLimiter(redis_store.client, settings.rate_limit),
            health=HealthProbe(redis_store, database, breaker),
        )

    async def aclose(self) -> None:
        """Release resources in reverse order of dependency."""
        await self.external_http.aclose()
        await self.oauth_http.aclose()
        await self.database.aclose()
        await self.redis.aclose()
        logger.info("Service container closed")


__all__ = ["ServiceContainer"]
