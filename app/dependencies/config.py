"""
FastAPI dependency for application settings.
"""

from fastapi import Depends, Request

from app.core.config import AppSettings, get_settings


def get_app_settings(request: Request) -> AppSettings:
    """Settings the running container was built with, else the process defaults."""
    container = getattr(request.app.state, "container", None)
    if container is not None:
        return container.settings
    return get_settings()


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
