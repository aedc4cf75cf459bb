try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import hashlib
import hmac

import pytest

from app.core.errors import AuthenticationFailure
from app.services.webhook_security import WebhookSignatureVerifier

NOW = 1_760_000_000.0


def _verifier(tolerance: int = 300) -> WebhookSignatureVerifier:
    return WebhookSignatureVerifier("shared-secret", tolerance_seconds=tolerance, clock=lambda: NOW)


def test_signature_is_hex_hmac_sha256_of_body() -> None:
    body = b'{"eventType":"order.created"}'

    expected = hmac.new(b"shared-secret", body, hashlib.sha256).hexdigest()

    assert _verifier().sign(body) == expected


def test_valid_signature_and_fresh_timestamp_pass() -> None:
    verifier = _verifier()
    body = b'{"eventType":"order.created"}'

    verifier.verify(body, verifier.sign(body), str(int(NOW)))


def test_signature_over_mutated_body_is_rejected() -> None:
    verifier = _verifier()
    signature = verifier.sign(b'{"amount":10}')

    with pytest.raises(AuthenticationFailure):
        verifier.verify(b'{"amount":1000}', signature, str(int(NOW)))


@pytest.mark.parametrize("signature", [None, "", "deadbeef"])
def test_missing_or_wrong_signature_is_rejected(signature) -> None:
    with pytest.raises(AuthenticationFailure):
        _verifier().verify(b"{}", signature, str(int(NOW)))


@pytest.mark.parametrize("age", [299, -299, 300])
def test_timestamps_within_tolerance_are_accepted(age: int) -> None:
    _verifier().verify_timestamp(str(int(NOW - age)))


@pytest.mark.parametrize("age", [301, -301, 86400])
def test_timestamps_outside_tolerance_are_rejected(age: int) -> None:
    with pytest.raises(AuthenticationFailure):
        _verifier().verify_timestamp(str(int(NOW - age)))


@pytest.mark.parametrize("timestamp", [None, "", "yesterday", "nan", "inf", "-inf"])
def test_missing_or_malformed_timestamp_is_rejected(timestamp) -> None:
    with pytest.raises(AuthenticationFailure):
        _verifier().verify_timestamp(timestamp)


def test_signature_is_checked_before_timestamp() -> None:
    with pytest.raises(AuthenticationFailure) as excinfo:
        _verifier().verify(b"{}", "bad", "yesterday")

    assert excinfo.value.message == "Invalid webhook signature"
