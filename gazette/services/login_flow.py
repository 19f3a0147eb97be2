"""
Authorization-code login: consent URL, callback completion and logout.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Tuple

from gazette.clients.spotify_api import SpotifyApiClient
from gazette.clients.spotify_auth import SpotifyOAuthClient, TokenGrant
from gazette.models.principal import Principal
from gazette.models.session import Session
from gazette.schemas import SpotifyUser
from gazette.services.principal_directory import (
    DuplicatePrincipalError,
    PrincipalDirectory,
)
from gazette.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class LoginFlowService:
    """Turns a Spotify callback into a principal record and a session."""

    def __init__(
        self,
        *,
        oauth_client: SpotifyOAuthClient,
        api_client: SpotifyApiClient,
        directory: PrincipalDirectory,
        sessions: SessionStore,
    ) -> None:
        self._oauth = oauth_client
        self._api = api_client
        self._directory = directory
        self._sessions = sessions

    def start(self) -> Tuple[str, str]:
        """Return ``(state, authorization_url)`` for a new consent attempt."""
        state = self._oauth.generate_state()
        return state, self._oauth.build_authorization_url(state)

    async def complete(self, code: str) -> Session:
        """Exchange ``code``, record the principal and open a session.

        Raises ``UpstreamAuthError``, ``UpstreamDataError`` or
        ``PayloadValidationError``; nothing is written when any step fails.
        """
        grant = await self._oauth.exchange_authorization_code(code)
        issued_at = datetime.now(timezone.utc)
        profile = await self._api.get_profile(grant.access_token)
        principal = self._upsert(profile, grant, issued_at)
        session = self._sessions.create(principal.internal_id)
        logger.info(
            "Opened session for principal %s (spotify id %s)",
            principal.internal_id,
            principal.provider_id,
        )
        return session

    def end(self, session_id: str) -> None:
        self._sessions.delete(session_id)

    def _upsert(
        self, profile: SpotifyUser, grant: TokenGrant, issued_at: datetime
    ) -> Principal:
        snapshot = profile.model_dump(mode="json")
        existing = self._directory.get_by_provider_id(profile.id)
        if existing is None:
            candidate = Principal(
                provider_id=profile.id,
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                token_expiry=issued_at + timedelta(seconds=grant.expires_in),
                profile_snapshot=snapshot,
                created_at=issued_at,
                updated_at=issued_at,
            )
            try:
                return self._directory.create(candidate)
            except DuplicatePrincipalError:
                # A concurrent login for the same account won the insert.
                existing = self._directory.get_by_provider_id(profile.id)
                if existing is None:
                    raise

        updated = existing.with_tokens(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_in=grant.expires_in,
            issued_at=issued_at,
        ).model_copy(update={"profile_snapshot": snapshot})
        return self._directory.update(updated)


__all__ = ["LoginFlowService"]
