"""Symmetric encryption for Spotify tokens kept in the principal directory."""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _derive_fernet(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """Encrypt with the current secret, decrypt with current or retired ones.

    Retired secrets let records written before a rotation stay readable.
    The SQLite directory uses :meth:`is_current` and :meth:`rotate` to rewrite
    such records under the current key when it reads them.
    """

    def __init__(self, *, secret: str, previous_secrets: Iterable[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        self._current = _derive_fernet(secret)
        keys = [self._current]
        keys.extend(_derive_fernet(old) for old in previous_secrets if old)
        self._fernet = MultiFernet(keys)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")

    def is_current(self, ciphertext: str) -> bool:
        """Whether ``ciphertext`` was written under the current secret."""
        try:
            self._current.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken:
            return False
        return True

    def rotate(self, ciphertext: str) -> str:
        """Re-encrypt ``ciphertext`` under the current secret."""
        try:
            return self._fernet.rotate(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Cannot rotate an unreadable ciphertext.") from exc


__all__ = ["TokenCipherService"]
