"""
Acquire and share short-lived bearer credentials across the fleet.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from app.clients.oauth import ClientCredentialsClient, OAuthTokenExchangeError
from app.core.config import OAuthSettings
from app.core.errors import AuthenticationFailure
from app.models.tokens import CachedToken
from app.services.cache import KeyValueCache
from app.services.locks import DistributedLock
from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class TokenBroker:
    """
    Hands out a valid access token per scope with at most one upstream fetch in flight.

    Fast path is a cache read. On a miss the caller races for the scope lock;
    the winner fetches and publishes the credential, losers poll the cache for
    a bounded wait and then fall back to fetching themselves.
    """

    def __init__(
        self,
        oauth_client: ClientCredentialsClient,
        cache: KeyValueCache,
        lock: DistributedLock,
        settings: OAuthSettings,
        token_cipher: Optional[TokenCipherService] = None,
    ) -> None:
        self._oauth = oauth_client
        self._cache = cache
        self._lock = lock
        self._settings = settings
        self._cipher = token_cipher

    def _cache_key(self, scope: str) -> str:
        return f"{self._oauth.client_id}:{scope}"

    @staticmethod
    def _lock_key(scope: str) -> str:
        return f"lock:token:{scope}"

    async def get_token(self, scope: Optional[str] = None) -> str:
        """Return an access token for ``scope`` (defaults to the configured scope)."""
        scope = scope or self._settings.scope

        cached = await self._read_cached(scope)
        if cached:
            return cached

        lock_key = self._lock_key(scope)
        if await self._lock.try_acquire(lock_key, self._settings.lock_ttl_seconds):
            try:
                # Another holder may have published while this caller raced for the lock.
                cached = await self._read_cached(scope)
                if cached:
                    return cached
                return await self._fetch_and_store(scope)
            finally:
                await self._lock.release(lock_key)

        logger.debug("Token refresh in progress elsewhere, waiting", extra={"scope": scope})
        cached = await self._wait_for_token(scope)
        if cached:
            return cached

        cached = await self._read_cached(scope)
        if cached:
            return cached
        logger.warning(
            "Lock wait elapsed without a cached token, fetching directly",
            extra={"scope": scope, "waited_seconds": self._settings.lock_wait_seconds},
        )
        return await self._fetch_and_store(scope)

    async def invalidate(self, scope: Optional[str] = None) -> None:
        """Drop the cached credential so the next caller fetches a fresh one."""
        await self._cache.delete(self._cache_key(scope or self._settings.scope))

    async def _wait_for_token(self, scope: str) -> Optional[str]:
        deadline = time.monotonic() + self._settings.lock_wait_seconds
        while time.monotonic() < deadline:
            await asyncio.sleep(self._settings.lock_poll_interval_seconds)
            cached = await self._read_cached(scope)
            if cached:
                return cached
        return None

    async def _read_cached(self, scope: str) -> Optional[str]:
        raw = await self._cache.get(self._cache_key(scope))
        if not raw:
            return None
        try:
            token = CachedToken.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Ignoring malformed cached token", extra={"scope": scope})
            return None
        if not token.is_valid():
            return None
        if self._cipher is None:
            return token.access_token
        access_token = self._cipher.open(token.access_token)
        if access_token is None:
            logger.warning("Cached token could not be decrypted", extra={"scope": scope})
        return access_token

    async def _fetch_and_store(self, scope: str) -> str:
        try:
            response = await self._oauth.fetch_token(scope)
        except OAuthTokenExchangeError as exc:
            logger.error("Token fetch failed", extra={"scope": scope, "error": str(exc)})
            raise AuthenticationFailure("Failed to obtain access token", details={"scope": scope}) from exc

        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=response.expires_in)
        cache_ttl = response.expires_in - self._settings.token_buffer_seconds
        if cache_ttl > 0:
            stored = response.access_token
            if self._cipher is not None:
                stored = self._cipher.seal(stored)
            entry = CachedToken(access_token=stored, expires_at=expires_at)
            await self._cache.set(self._cache_key(scope), entry.model_dump(mode="json"), ttl_seconds=cache_ttl)
        else:
            logger.warning(
                "Token lifetime shorter than refresh buffer, not caching",
                extra={"scope": scope, "expires_in": response.expires_in},
            )

        logger.info("Token fetched", extra={"scope": scope, "expires_in": response.expires_in})
        return response.access_token


__all__ = ["TokenBroker"]
