"""Symmetric encryption for credentials written to the shared cache."""

from __future__ import annotations

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


class TokenCipherService:
    """Encrypt and decrypt bearer tokens using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def seal(self, access_token: str) -> str:
        """Return the ciphertext for ``access_token``."""
        return self._fernet.encrypt(access_token.encode("utf-8")).decode("utf-8")

    def open(self, sealed: str) -> Optional[str]:
        """
        Return the plaintext token, or ``None`` when ``sealed`` was produced
        under another key or has been tampered with.
        """
        try:
            plaintext = self._fernet.decrypt(sealed.encode("utf-8"))
        except (InvalidToken, ValueError):
            return None
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService"]
