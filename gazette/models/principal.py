"""
Domain model for an authenticated Spotify listener.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Principal(BaseModel):
    """One record per Spotify account that has completed the login flow.

    Records are immutable; use :meth:`with_tokens` or :meth:`with_profile` to
    derive the replacement that gets written back to the directory.
    """

    model_config = ConfigDict(frozen=True)

    internal_id: str = Field(default_factory=lambda: uuid4().hex)
    provider_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    token_expiry: datetime
    profile_snapshot: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def expires_within(self, window: timedelta, *, now: datetime) -> bool:
        """True unless the access token outlives ``now + window``."""
        return not self.token_expiry > now + window

    def with_tokens(
        self,
        *,
        access_token: str,
        expires_in: int,
        issued_at: datetime,
        refresh_token: Optional[str] = None,
    ) -> "Principal":
        """Return a copy holding a new token pair and its matching expiry."""
        return self.model_copy(
            update={
                "access_token": access_token,
                "refresh_token": refresh_token or self.refresh_token,
                "token_expiry": issued_at + timedelta(seconds=expires_in),
                "updated_at": issued_at,
            }
        )

    def with_profile(self, profile: Dict[str, Any]) -> "Principal":
        return self.model_copy(
            update={"profile_snapshot": profile, "updated_at": _utcnow()}
        )


__all__ = ["Principal"]
