"""
Thin wrapper over the Spotify Web API endpoints the newspaper uses.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx
from pydantic import ValidationError

from gazette.core.errors import PayloadValidationError, UpstreamDataError
from gazette.schemas import (
    RecentlyPlayedTrack,
    SpotifyArtist,
    SpotifyTrack,
    SpotifyUser,
)

logger = logging.getLogger(__name__)


def _first_image(images: List[Dict[str, Any]] | None) -> str | None:
    if not images:
        return None
    return images[0].get("url")


class SpotifyApiClient:
    """Issue bearer-authenticated reads on behalf of a principal."""

    BASE_URL = "https://api.spotify.com/v1"

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._transport = transport

    async def _get(
        self, path: str, access_token: str, params: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    path,
                    params=params,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Spotify GET %s failed: %s", path, exc.__class__.__name__)
            raise UpstreamDataError(detail=f"{path}: {exc!r}") from exc

        if not response.is_success:
            logger.warning("Spotify GET %s returned %s", path, response.status_code)
            raise UpstreamDataError(detail=response.text)
        try:
            return response.json()
        except ValueError as exc:
            raise PayloadValidationError(detail=f"{path}: non-JSON body") from exc

    async def get_profile(self, access_token: str) -> SpotifyUser:
        payload = await self._get("/me", access_token)
        try:
            return SpotifyUser.model_validate(payload)
        except ValidationError as exc:
            raise PayloadValidationError(detail=str(exc)) from exc

    async def get_top_tracks(
        self, access_token: str, *, limit: int = 10, time_range: str = "medium_term"
    ) -> List[SpotifyTrack]:
        payload = await self._get(
            "/me/top/tracks", access_token, {"time_range": time_range, "limit": limit}
        )
        try:
            return [
                SpotifyTrack(
                    id=item["id"],
                    name=item["name"],
                    artist=item["artists"][0]["name"],
                    album=item["album"]["name"],
                    image_url=_first_image(item["album"].get("images")),
                    popularity=item.get("popularity"),
                )
                for item in payload.get("items", [])
            ]
        except (AttributeError, KeyError, IndexError, TypeError, ValidationError) as exc:
            raise PayloadValidationError(detail=f"top tracks: {exc!r}") from exc

    async def get_top_artists(
        self, access_token: str, *, limit: int = 10, time_range: str = "medium_term"
    ) -> List[SpotifyArtist]:
        payload = await self._get(
            "/me/top/artists", access_token, {"time_range": time_range, "limit": limit}
        )
        try:
            return [
                SpotifyArtist(
                    id=item["id"],
                    name=item["name"],
                    image_url=_first_image(item.get("images")),
                    genres=item.get("genres") or [],
                    popularity=item.get("popularity"),
                )
                for item in payload.get("items", [])
            ]
        except (AttributeError, KeyError, TypeError, ValidationError) as exc:
            raise PayloadValidationError(detail=f"top artists: {exc!r}") from exc

    async def get_recently_played(
        self, access_token: str, *, limit: int = 10
    ) -> List[RecentlyPlayedTrack]:
        payload = await self._get(
            "/me/player/recently-played", access_token, {"limit": limit}
        )
        try:
            return [
                RecentlyPlayedTrack(
                    id=item["track"]["id"],
                    name=item["track"]["name"],
                    artist=item["track"]["artists"][0]["name"],
                    played_at=item["played_at"],
                )
                for item in payload.get("items", [])
            ]
        except (AttributeError, KeyError, IndexError, TypeError, ValidationError) as exc:
            raise PayloadValidationError(detail=f"recently played: {exc!r}") from exc


__all__ = ["SpotifyApiClient"]
