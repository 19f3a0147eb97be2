"""Public schema exports."""

from .auth import LoginResponse, MessageResponse, SessionStatus
from .spotify import (
    GenreShare,
    ListeningHabit,
    ListeningStats,
    NewspaperData,
    RecentlyPlayedTrack,
    SpotifyArtist,
    SpotifyImage,
    SpotifyTrack,
    SpotifyUser,
)

__all__ = [
    "GenreShare",
    "ListeningHabit",
    "ListeningStats",
    "LoginResponse",
    "MessageResponse",
    "NewspaperData",
    "RecentlyPlayedTrack",
    "SessionStatus",
    "SpotifyArtist",
    "SpotifyImage",
    "SpotifyTrack",
    "SpotifyUser",
]
