"""
Per-request gate guaranteeing a fresh Spotify access token.

Every route that reads Spotify data resolves its token through
:meth:`AccessGuard.ensure_access`. The guard walks the session to its
principal, hands out the cached token while it outlives the refresh window,
and otherwise refreshes it once, writing the new token and expiry back as a
single record replacement.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from gazette.clients.spotify_auth import SpotifyOAuthClient
from gazette.core.errors import Unauthenticated, UpstreamAuthError
from gazette.models.principal import Principal
from gazette.services.principal_directory import (
    PrincipalDirectory,
    PrincipalNotFoundError,
)
from gazette.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class AccessState(str, Enum):
    NO_SESSION = "no_session"
    SESSION_NO_PRINCIPAL = "session_no_principal"
    VALID_TOKEN = "valid_token"
    EXPIRING_TOKEN = "expiring_token"
    REFRESHED = "refreshed"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class AccessGrant:
    """Outcome of a successful guard pass."""

    principal: Principal
    state: AccessState

    @property
    def access_token(self) -> str:
        return self.principal.access_token


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessGuard:
    """Resolve a session to a principal holding a usable access token."""

    REFRESH_WINDOW = timedelta(minutes=5)

    def __init__(
        self,
        *,
        directory: PrincipalDirectory,
        sessions: SessionStore,
        oauth_client: SpotifyOAuthClient,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._directory = directory
        self._sessions = sessions
        self._oauth = oauth_client
        self._clock = clock
        self._refresh_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, principal_id: str) -> asyncio.Lock:
        lock = self._refresh_locks.get(principal_id)
        if lock is None:
            lock = asyncio.Lock()
            self._refresh_locks[principal_id] = lock
        return lock

    @staticmethod
    def _reject(state: AccessState) -> Unauthenticated:
        logger.info("Access rejected: %s", state.value)
        return Unauthenticated(detail=state.value)

    def _needs_refresh(self, principal: Principal) -> bool:
        return principal.expires_within(self.REFRESH_WINDOW, now=self._clock())

    async def ensure_access(self, session_id: Optional[str]) -> AccessGrant:
        if not session_id:
            raise self._reject(AccessState.NO_SESSION)
        session = self._sessions.get(session_id)
        if session is None:
            raise self._reject(AccessState.NO_SESSION)

        principal = self._directory.get(session.principal_id)
        if principal is None:
            raise self._reject(AccessState.SESSION_NO_PRINCIPAL)
        if not self._needs_refresh(principal):
            return AccessGrant(principal=principal, state=AccessState.VALID_TOKEN)

        async with self._lock_for(principal.internal_id):
            # Another request may have refreshed while this one waited.
            principal = self._directory.get(session.principal_id)
            if principal is None:
                raise self._reject(AccessState.SESSION_NO_PRINCIPAL)
            if not self._needs_refresh(principal):
                return AccessGrant(principal=principal, state=AccessState.VALID_TOKEN)
            return await self._refresh(principal)

    async def _refresh(self, principal: Principal) -> AccessGrant:
        logger.info(
            "Access token for principal %s is %s; refreshing",
            principal.internal_id,
            AccessState.EXPIRING_TOKEN.value,
        )
        try:
            grant = await self._oauth.refresh_access_token(principal.refresh_token)
        except UpstreamAuthError as exc:
            logger.warning(
                "Token refresh failed for principal %s: %s",
                principal.internal_id,
                exc.detail,
            )
            raise self._reject(AccessState.REJECTED) from exc

        refreshed = principal.with_tokens(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_in=grant.expires_in,
            issued_at=self._clock(),
        )
        try:
            self._directory.update(refreshed)
        except PrincipalNotFoundError as exc:
            raise self._reject(AccessState.SESSION_NO_PRINCIPAL) from exc
        return AccessGrant(principal=refreshed, state=AccessState.REFRESHED)


__all__ = ["AccessGrant", "AccessGuard", "AccessState"]
