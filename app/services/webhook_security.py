"""
Authenticity checks for inbound webhooks.
"""

from __future__ import annotations

import hmac
import math
import time
from hashlib import sha256
from typing import Callable, Optional

from app.core.errors import AuthenticationFailure


class WebhookSignatureVerifier:
    """Verify HMAC-SHA256 signatures and timestamp freshness of webhook bodies."""

    def __init__(
        self,
        secret: str,
        *,
        tolerance_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret.encode("utf-8")
        self._tolerance = tolerance_seconds
        self._clock = clock

    def sign(self, body: bytes) -> str:
        """Hex digest a sender attaches as ``X-Webhook-Signature``."""
        return hmac.new(self._secret, body, sha256).hexdigest()

    def verify_signature(self, body: bytes, signature: Optional[str]) -> None:
        if not signature:
            raise AuthenticationFailure("Missing webhook signature")
        expected = self.sign(body)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.strip().lower().encode("utf-8")):
            raise AuthenticationFailure("Invalid webhook signature")

    def verify_timestamp(self, timestamp: Optional[str]) -> None:
        if not timestamp:
            raise AuthenticationFailure("Missing webhook timestamp")
        try:
            claimed = float(timestamp)
        except ValueError as exc:
            raise AuthenticationFailure("Invalid webhook timestamp") from exc
        if not math.isfinite(claimed):
            raise AuthenticationFailure("Invalid webhook timestamp")
        if abs(self._clock() - claimed) > self._tolerance:
            raise AuthenticationFailure(
                "Webhook timestamp outside tolerance",
                details={"tolerance_seconds": self._tolerance},
            )

    def verify(self, body: bytes, signature: Optional[str], timestamp: Optional[str]) -> None:
        """Signature first, then freshness; either failure is an ``AuthenticationFailure``."""
        self.verify_signature(body, signature)
        self.verify_timestamp(timestamp)


__all__ = ["WebhookSignatureVerifier"]
