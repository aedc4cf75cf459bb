"""
Resolve services from the application's ``ServiceContainer``.

Routes depend on these functions rather than on the container itself, so tests
can replace any one of them through ``app.dependency_overrides``.
"""

from fastapi import Request

from app.dependencies.container import ServiceContainer
from app.services.catalog import CatalogService
from app.services.health import HealthProbe
from app.services.rate_limit import RateLimiter
from app.services.webhooks import WebhookService


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container is not initialised; is the lifespan running?")
    return container


def get_catalog_service(request: Request) -> CatalogService:
    return get_container(request).catalog


def get_webhook_service(request: Request) -> WebhookService:
    return get_container(request).webhooks


def get_rate_limiter(request: Request) -> RateLimiter:
    return get_container(request).rate_limiter


def get_health_probe(request: Request) -> HealthProbe:
    return get_container(request).health


__all__ = [
    "get_catalog_service",
    "get_container",
    "get_health_probe",
    "get_rate_limiter",
    "get_webhook_service",
]
