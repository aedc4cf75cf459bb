"""
Domain models for upstream credentials.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """Body returned by the client-credentials token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., gt=0, description="Credential lifetime in seconds.")
    scope: Optional[str] = None


class CachedToken(BaseModel):
    """A credential as stored in the shared cache, replaced wholesale on refresh."""

    model_config = {"frozen": True}

    access_token: str = Field(..., description="Bearer token, possibly encrypted at rest.")
    expires_at: datetime = Field(..., description="Absolute expiry of the credential.")

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        current = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return current < expires_at


__all__ = ["CachedToken", "TokenResponse"]
