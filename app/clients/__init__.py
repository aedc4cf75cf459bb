"""Expose constructed client wrappers."""

from .catalog_store import CatalogStore
from .database import Database
from .oauth import ClientCredentialsClient, OAuthTokenExchangeError
from .redis_store import STORE_ERRORS, RedisStore
from .webhook_store import WebhookEventStore

__all__ = [
    "CatalogStore",
    "ClientCredentialsClient",
    "Database",
    "OAuthTokenExchangeError",
    "RedisStore",
    "STORE_ERRORS",
    "WebhookEventStore",
]
