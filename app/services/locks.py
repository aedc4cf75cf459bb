"""Set-if-absent locks over the shared key-value store."""

from __future__ import annotations

import logging
import socket
import uuid
from typing import Any

from app.clients.redis_store import STORE_ERRORS

logger = logging.getLogger(__name__)


def _holder_marker() -> str:
    return f"{socket.gethostname()}:{uuid.uuid4().hex}"


class DistributedLock:
    """
    Fleet-wide mutual exclusion with a mandatory expiry.

    Acquisition is a single ``SET key marker NX EX ttl`` so there is no window
    between checking for a holder and claiming the key. A crashed holder's
    entry expires after ``ttl``.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def try_acquire(self, key: str, ttl_seconds: int) -> bool:
        """Claim ``key`` for ``ttl_seconds``; ``False`` if held or the store is down."""
        if ttl_seconds <= 0:
            raise ValueError("Lock TTL must be a positive number of seconds.")
        try:
            acquired = await self._client.set(key, _holder_marker(), nx=True, ex=int(ttl_seconds))
        except STORE_ERRORS as exc:
            logger.error("Lock acquire error", extra={"lock": key, "error": str(exc)})
            return False
        return bool(acquired)

    async def release(self, key: str) -> None:
        """Delete ``key`` whether or not this caller holds it."""
        try:
            await self._client.delete(key)
        except STORE_ERRORS as exc:
            logger.error("Lock release error", extra={"lock": key, "error": str(exc)})


__all__ = ["DistributedLock"]
