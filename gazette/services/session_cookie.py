"""
Signed cookie values for session ids and OAuth state.

The cookie only carries an opaque id; everything else lives server-side.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import time
from hashlib import sha256
from typing import Optional

_SIGNATURE_BYTES = 32


class CookieSigner:
    """HMAC-sign short string values so a client cannot forge them."""

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise ValueError("Cookie signing secret must be provided.")
        self._secret_key = secret_key.encode("utf-8")

    def _sign(self, body: bytes) -> bytes:
        return hmac.new(self._secret_key, body, sha256).digest()

    def sign(self, value: str) -> str:
        body = json.dumps({"v": value, "t": int(time.time())}, separators=(",", ":"))
        raw = body.encode("utf-8")
        return base64.urlsafe_b64encode(self._sign(raw) + raw).decode("ascii")

    def unsign(self, token: str, *, max_age_seconds: Optional[int] = None) -> Optional[str]:
        """Return the signed value, or ``None`` when tampered, malformed or stale."""
        try:
            decoded = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, ValueError):
            return None
        signature, raw = decoded[:_SIGNATURE_BYTES], decoded[_SIGNATURE_BYTES:]
        if not raw or not hmac.compare_digest(signature, self._sign(raw)):
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            return None
        value = payload.get("v")
        issued_at = payload.get("t")
        if not isinstance(value, str) or not isinstance(issued_at, int):
            return None
        if max_age_seconds is not None and time.time() - issued_at > max_age_seconds:
            return None
        return value


__all__ = ["CookieSigner"]
