"""
Spotify OAuth utilities.

These helpers build the consent URL and talk to the Spotify accounts token
endpoint for both the authorization-code exchange and access token refresh.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from gazette.core.config import SpotifySettings
from gazette.core.errors import UpstreamAuthError

logger = logging.getLogger(__name__)

_STATE_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True, slots=True)
class TokenGrant:
    """Tokens issued by the accounts service.

    ``refresh_token`` is ``None`` on a refresh response unless Spotify rotated it.
    """

    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None


def _lifetime_seconds(expires_in: Any) -> int:
    try:
        return int(expires_in)
    except (TypeError, ValueError) as exc:
        raise UpstreamAuthError(detail=f"Unusable expires_in value: {expires_in!r}") from exc


class SpotifyOAuthClient:
    """Build Spotify authorization URLs and obtain tokens."""

    AUTH_BASE_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"

    def __init__(
        self,
        settings: SpotifySettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._spotify = settings
        self._transport = transport

    @staticmethod
    def generate_state(length: int = 16) -> str:
        """Random alphanumeric anti-forgery token."""
        return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))

    def build_authorization_url(self, state: str) -> str:
        """Construct the Spotify consent URL."""
        params = {
            "response_type": "code",
            "client_id": self._spotify.client_id,
            "scope": " ".join(self._spotify.scopes),
            "redirect_uri": str(self._spotify.redirect_uri),
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access/refresh token pair."""
        payload = await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": str(self._spotify.redirect_uri),
            },
            operation="code exchange",
        )
        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        expires_in = payload.get("expires_in")
        if not access_token or not refresh_token or not expires_in:
            raise UpstreamAuthError(detail="Incomplete token payload returned from Spotify.")
        return TokenGrant(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=_lifetime_seconds(expires_in),
        )

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        """Obtain a new access token. Failures are final for the current request."""
        payload = await self._request_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            operation="token refresh",
        )
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        if not access_token or not expires_in:
            raise UpstreamAuthError(detail="Incomplete refresh payload returned from Spotify.")
        return TokenGrant(
            access_token=access_token,
            expires_in=_lifetime_seconds(expires_in),
            refresh_token=payload.get("refresh_token") or None,
        )

    async def _request_token(self, form: Dict[str, str], *, operation: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._spotify.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data=form,
                    auth=(self._spotify.client_id, self._spotify.client_secret),
                )
        except httpx.HTTPError as exc:
            logger.warning("Spotify %s failed: %s", operation, exc.__class__.__name__)
            raise UpstreamAuthError(detail=f"{operation}: {exc!r}") from exc

        if not response.is_success:
            logger.warning(
                "Spotify %s rejected with status %s", operation, response.status_code
            )
            raise UpstreamAuthError(detail=response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamAuthError(detail="Token endpoint returned non-JSON body.") from exc
        if not isinstance(payload, dict):
            raise UpstreamAuthError(
                detail=f"Token endpoint returned {type(payload).__name__}, expected an object."
            )
        return payload


__all__ = ["SpotifyOAuthClient", "TokenGrant"]
