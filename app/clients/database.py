"""
Async relational store access.

The ``Database`` owns the SQLAlchemy engine and hands out short-lived sessions;
it is created by the composition root and disposed on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import DatabaseSettings
from app.models.tables import Base

logger = logging.getLogger(__name__)


def _engine_options(settings: DatabaseSettings) -> Dict[str, Any]:
    if settings.url.startswith("sqlite"):
        return {}
    options: Dict[str, Any] = {
        "pool_size": settings.pool_size,
        "max_overflow": settings.max_overflow,
        "pool_timeout": settings.pool_timeout_seconds,
        "pool_pre_ping": True,
    }
    if "+asyncpg" in settings.url:
        options["connect_args"] = {
            "timeout": settings.pool_timeout_seconds,
            "command_timeout": settings.command_timeout_seconds,
        }
    return options


class Database:
    """SQLAlchemy async engine plus a session factory."""

    def __init__(self, engine: AsyncEngine, *, ping_timeout_seconds: float = 5.0) -> None:
        self.engine = engine
        self.SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
        self._ping_timeout = ping_timeout_seconds

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        engine = create_async_engine(settings.url, **_engine_options(settings))
        return cls(engine, ping_timeout_seconds=settings.pool_timeout_seconds)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that commits on success and rolls back on error."""
        s = self.SessionLocal()
        try:
            yield s
            await s.commit()
        except Exception:
            await s.rollback()
            raise
        finally:
            await s.close()

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        async def _probe() -> None:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        try:
            await asyncio.wait_for(_probe(), timeout=self._ping_timeout)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    async def aclose(self) -> None:
        await self.engine.dispose()


__all__ = ["Database"]
