"""
Client-credentials OAuth client.

Exchanges this service's client id and secret for a short-lived bearer token
scoped to a permission set.
"""

from __future__ import annotations

from http import HTTPStatus

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.config import OAuthSettings
from app.models.tokens import TokenResponse


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint fails or returns an unusable payload."""


class ClientCredentialsClient:
    """Request access tokens from the upstream identity provider."""

    def __init__(self, settings: OAuthSettings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client

    @property
    def client_id(self) -> str:
        return self._settings.client_id

    async def fetch_token(self, scope: str) -> TokenResponse:
        """
        Perform one client-credentials exchange for ``scope``.

        Raises ``OAuthTokenExchangeError`` for transport failures, non-200
        responses and payloads missing ``access_token`` or ``expires_in``.
        """
        payload = {
            "grant_type": "client_credentials",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "scope": scope,
        }

        try:
            response = await self._http.post(
                str(self._settings.token_url),
                data=payload,
                headers={"Accept": "application/json"},
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != HTTPStatus.OK:
            raise OAuthTokenExchangeError(
                f"Token endpoint returned {response.status_code}: {response.text[:200]}"
            )

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise OAuthTokenExchangeError("Incomplete token payload returned by provider.") from exc


__all__ = ["ClientCredentialsClient", "OAuthTokenExchangeError"]
