"""
Outbound client for the downstream marketplace API.

Each call injects a bearer credential, passes the circuit breaker, and runs
through the retry policy before its outcome is translated into a typed error.
"""

from __future__ import annotations

import logging
import time
from http import HTTPStatus
from typing import Any, Dict, Optional

import httpx

from app.core.config import ExternalApiSettings
from app.core.errors import ExternalDependencyError, GatewayTimeout, ServiceUnavailable
from app.services.token_broker import TokenBroker
from app.utils.circuit_breaker import CircuitBreaker
from app.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


async def _log_request(request: httpx.Request) -> None:
    request.extensions["started_at"] = time.perf_counter()
    logger.debug("External API request", extra={"method": request.method, "url": str(request.url)})


async def _log_response(response: httpx.Response) -> None:
    started_at = response.request.extensions.get("started_at")
    duration_ms = round((time.perf_counter() - started_at) * 1000, 1) if started_at else None
    logger.debug(
        "External API response",
        extra={
            "method": response.request.method,
            "url": str(response.request.url),
            "status": response.status_code,
            "duration_ms": duration_ms,
        },
    )


def build_http_client(settings: ExternalApiSettings, **kwargs: Any) -> httpx.AsyncClient:
    """Create the shared ``httpx.AsyncClient`` for the downstream API."""
    return httpx.AsyncClient(
        base_url=str(settings.base_url),
        timeout=settings.timeout_seconds,
        headers={"Content-Type": "application/json"},
        event_hooks={"request": [_log_request], "response": [_log_response]},
        **kwargs,
    )


class ResilientClient:
    """JSON GET/POST against the downstream API with credentials, breaker and retries."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_broker: TokenBroker,
        breaker: CircuitBreaker,
        retry_config: Optional[RetryConfig] = None,
        *,
        service_name: str = "External API",
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._http = http_client
        self._tokens = token_broker
        self._breaker = breaker
        self._retry = retry_config or RetryConfig()
        self._service = service_name
        self._timeout = timeout_seconds

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def get(
        self, path: str, *, params: Optional[Dict[str, Any]] = None, scope: Optional[str] = None
    ) -> Any:
        return await self.request("GET", path, params=params, scope=scope)

    async def post(self, path: str, *, json: Any = None, scope: Optional[str] = None) -> Any:
        return await self.request("POST", path, json=json, scope=scope)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        scope: Optional[str] = None,
    ) -> Any:
        """
        Perform one logical call and return the decoded JSON body.

        Raises ``AuthenticationFailure`` when no credential can be obtained,
        ``ServiceUnavailable`` while the circuit is open, ``GatewayTimeout``
        when the dependency does not answer in time and
        ``ExternalDependencyError`` for every other failure.
        """
        token = await self._tokens.get_token(scope)

        if not self._breaker.allow_request():
            logger.warning("Circuit open, rejecting call", extra={"circuit": self._breaker.name, "path": path})
            raise ServiceUnavailable(self._service)

        headers = {"Authorization": f"Bearer {token}"}
        request_kwargs: Dict[str, Any] = {"params": params, "headers": headers}
        if json is not None:
            request_kwargs["json"] = json
        if self._timeout is not None:
            request_kwargs["timeout"] = self._timeout

        async def send() -> httpx.Response:
            return await self._http.request(method, path, **request_kwargs)

        try:
            response = await request_with_retry(send, method=method, retry_config=self._retry)
        except httpx.TimeoutException as exc:
            self._breaker.record_failure()
            logger.error("External API timeout", extra={"method": method, "path": path})
            raise GatewayTimeout(self._service) from exc
        except httpx.HTTPError as exc:
            self._breaker.record_failure()
            logger.error("External API transport error", extra={"method": method, "path": path, "error": str(exc)})
            raise ExternalDependencyError(self._service, str(exc) or type(exc).__name__) from exc
        except Exception:
            self._breaker.record_failure()
            raise
        except BaseException:
            # Cancelled calls carry no verdict on the dependency.
            self._breaker.release_probe()
            raise

        status = response.status_code
        if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            self._breaker.record_failure()
            logger.error("External API server error", extra={"method": method, "path": path, "status": status})
            raise ExternalDependencyError(self._service, f"Upstream responded with {status}", status)

        # 4xx counts as a success: the dependency answered.
        self._breaker.record_success()
        if status >= HTTPStatus.BAD_REQUEST:
            raise ExternalDependencyError(self._service, f"Upstream responded with {status}", status)

        if status == HTTPStatus.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalDependencyError(self._service, "Upstream returned invalid JSON", status) from exc


__all__ = ["ResilientClient", "build_http_client"]
