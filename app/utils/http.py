"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from app.core.config import ExternalApiSettings

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


@dataclass(frozen=True)
class RetryConfig:
    """
    Exponential backoff with additive jitter.

    ``max_attempts`` counts retries after the first request, so a call that
    keeps failing reaches the network ``max_attempts + 1`` times.
    """

    max_attempts: int = 3
    initial_delay: float = 0.1
    max_delay: float = 5.0
    jitter: float = 0.1

    @classmethod
    def from_settings(cls, settings: ExternalApiSettings) -> "RetryConfig":
        return cls(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            jitter=settings.retry_jitter_seconds,
        )

    def backoff(self, retry_number: int) -> float:
        """Capped delay before 1-based retry ``retry_number``, without jitter."""
        return min(self.initial_delay * (2 ** (retry_number - 1)), self.max_delay)

    def compute_delay(self, retry_number: int) -> float:
        return self.backoff(retry_number) + random.uniform(0, self.jitter)

    def should_retry_response(self, response: httpx.Response) -> bool:
        return response.status_code >= 500

    def should_retry_error(self, method: str, error: Exception) -> bool:
        if isinstance(error, httpx.TimeoutException):
            return False
        if isinstance(error, httpx.ConnectError):
            return True
        if isinstance(error, httpx.TransportError):
            return method.upper() in IDEMPOTENT_METHODS
        return False


async def request_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    method: str,
    retry_config: Optional[RetryConfig] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """
    Invoke ``send`` until it yields a non-retryable outcome or retries run out.

    The last response is returned even when it is a 5xx; exceptions that are
    not retryable, or that persist past the final retry, propagate unchanged.
    """
    config = retry_config or RetryConfig()
    retry_number = 0

    while True:
        try:
            response = await send()
        except httpx.HTTPError as exc:
            if retry_number >= config.max_attempts or not config.should_retry_error(method, exc):
                raise
            retry_number += 1
            delay = config.compute_delay(retry_number)
            logger.warning(
                "Retrying request after transport error",
                extra={"method": method, "attempt": retry_number, "delay": round(delay, 3), "error": str(exc)},
            )
            await sleep(delay)
            continue

        if retry_number >= config.max_attempts or not config.should_retry_response(response):
            return response
        retry_number += 1
        delay = config.compute_delay(retry_number)
        logger.warning(
            "Retrying request after server error",
            extra={
                "method": method,
                "attempt": retry_number,
                "delay": round(delay, 3),
                "status": response.status_code,
            },
        )
        await response.aclose()
        await sleep(delay)


__all__ = ["IDEMPOTENT_METHODS", "RetryConfig", "request_with_retry"]
