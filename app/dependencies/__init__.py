"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_catalog_service,
    get_container,
    get_health_probe,
    get_rate_limiter,
    get_webhook_service,
)
from .config import SettingsDependency, get_app_settings
from .container import ServiceContainer

__all__ = [
    "ServiceContainer",
    "SettingsDependency",
    "get_app_settings",
    "get_catalog_service",
    "get_container",
    "get_health_probe",
    "get_rate_limiter",
    "get_webhook_service",
]
