"""
Typed application errors.

Every error that crosses a service boundary carries a machine-readable code, a
human message, an HTTP status for the boundary layer, and optional details.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(AppError):
    status_code = HTTPStatus.BAD_REQUEST
    code = "VALIDATION_ERROR"


class AuthenticationFailure(AppError):
    """Bad or missing signature, stale timestamp, or failed credential exchange."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "AUTHENTICATION_ERROR"

    def __init__(
        self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, details)


class NotFound(AppError):
    status_code = HTTPStatus.NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class RateLimitExceeded(AppError):
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: Optional[int] = None) -> None:
        super().__init__("Rate limit exceeded", {"retry_after": retry_after})
        self.retry_after = retry_after


class ExternalDependencyError(AppError):
    """Non-timeout failure from a downstream dependency."""

    status_code = HTTPStatus.BAD_GATEWAY
    code = "EXTERNAL_API_ERROR"

    def __init__(
        self,
        service: str,
        message: str,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"External API error ({service}): {message}",
            {"upstream_status": upstream_status},
        )
        self.service = service
        self.upstream_status = upstream_status


class ServiceUnavailable(AppError):
    """Raised while the circuit protecting a dependency is open."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"

    def __init__(self, service: str = "Service", message: Optional[str] = None) -> None:
        super().__init__(message or f"{service} is currently unavailable")
        self.service = service


class GatewayTimeout(AppError):
    status_code = HTTPStatus.GATEWAY_TIMEOUT
    code = "GATEWAY_TIMEOUT"

    def __init__(self, service: str = "Upstream service") -> None:
        super().__init__(f"{service} timeout")
        self.service = service


__all__ = [
    "AppError",
    "AuthenticationFailure",
    "ExternalDependencyError",
    "GatewayTimeout",
    "NotFound",
    "RateLimitExceeded",
    "ServiceUnavailable",
    "ValidationError",
]
