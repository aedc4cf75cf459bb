"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import fnmatch
import time
from typing import Any, Dict, Optional, Tuple

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import create_async_engine

from app.clients.database import Database


class FakeRedis:
    """In-memory stand-in for the subset of ``redis.asyncio.Redis`` the app uses."""

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._offset = 0.0
        self.set_calls = 0

    def _now(self) -> float:
        return time.monotonic() + self._offset

    def advance(self, seconds: float) -> None:
        """Move the fake's clock forward so TTLs elapse without sleeping."""
        self._offset += seconds

    def _live(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._now():
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[Any]:
        return self._live(key)

    async def set(self, key: str, value: Any, ex: Optional[int] = None, nx: bool = False) -> Optional[bool]:
        self.set_calls += 1
        if nx and self._live(key) is not None:
            return None
        expires_at = self._now() + ex if ex else None
        self._data[key] = (value, expires_at)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                removed += 1
            self._data.pop(key, None)
        return removed

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._live(key) is not None)

    async def scan_iter(self, match: str = "*", count: int = 10):
        for key in list(self._data):
            if self._live(key) is not None and fnmatch.fnmatchcase(key, match):
                yield key

    async def incr(self, key: str) -> int:
        current = self._live(key)
        value = int(current or 0) + 1
        expires_at = self._data[key][1] if key in self._data else None
        self._data[key] = (str(value), expires_at)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        value = self._live(key)
        if value is None:
            return False
        self._data[key] = (value, self._now() + seconds)
        return True

    async def ttl(self, key: str) -> int:
        if self._live(key) is None:
            return -2
        expires_at = self._data[key][1]
        if expires_at is None:
            return -1
        return int(round(expires_at - self._now()))

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class UnavailableRedis:
    """Every command fails as if the store were unreachable."""

    def __getattr__(self, name: str):
        async def _fail(*args, **kwargs):
            raise RedisConnectionError(f"{name}: connection refused")

        return _fail

    def scan_iter(self, *args, **kwargs):
        raise RedisConnectionError("scan_iter: connection refused")


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def unavailable_redis() -> UnavailableRedis:
    return UnavailableRedis()


@pytest.fixture
async def database(tmp_path):
    """SQLite-backed ``Database`` with all tables created; anyio tests only."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gateway.db'}")
    db = Database(engine)
    await db.create_tables()
    yield db
    await db.aclose()
