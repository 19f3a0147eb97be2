"""
Server-side browser session linking a cookie to a principal.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """A login session. ``principal_id`` is a lookup key, not ownership."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    principal_id: str
    created_at: datetime
    expires_at: datetime

    @classmethod
    def start(cls, principal_id: str, *, ttl_seconds: int) -> "Session":
        now = datetime.now(timezone.utc)
        return cls(
            principal_id=principal_id,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


__all__ = ["Session"]
