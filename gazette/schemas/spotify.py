"""Schemas for Spotify data and the newspaper payload built from it."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SpotifyImage(BaseModel):
    url: str


class SpotifyUser(BaseModel):
    """Profile returned by ``GET /v1/me``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: Optional[str] = None
    images: Optional[List[SpotifyImage]] = None
    country: Optional[str] = None
    email: Optional[str] = None
    product: Optional[str] = None


class SpotifyTrack(_CamelModel):
    id: str
    name: str
    artist: str
    album: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    popularity: Optional[int] = None


class SpotifyArtist(_CamelModel):
    id: str
    name: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    genres: List[str] = Field(default_factory=list)
    popularity: Optional[int] = None


class RecentlyPlayedTrack(_CamelModel):
    id: str
    name: str
    artist: str
    played_at: str = Field(..., alias="playedAt")


class GenreShare(BaseModel):
    name: str
    percentage: int


class ListeningHabit(BaseModel):
    title: str
    value: str


class ListeningStats(BaseModel):
    total_minutes: int
    top_month: str
    top_month_reason: str
    fun_fact: str
    listening_habits: List[ListeningHabit]


class NewspaperData(_CamelModel):
    """Everything the front page needs in one payload."""

    user: SpotifyUser
    top_tracks: List[SpotifyTrack] = Field(..., alias="topTracks")
    top_artists: List[SpotifyArtist] = Field(..., alias="topArtists")
    genres: List[GenreShare]
    stats: ListeningStats
    mood: str


__all__ = [
    "GenreShare",
    "ListeningHabit",
    "ListeningStats",
    "NewspaperData",
    "RecentlyPlayedTrack",
    "SpotifyArtist",
    "SpotifyImage",
    "SpotifyTrack",
    "SpotifyUser",
]
