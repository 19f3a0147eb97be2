"""Expose constructed client wrappers."""

from .spotify_api import SpotifyApiClient
from .spotify_auth import SpotifyOAuthClient, TokenGrant

__all__ = [
    "SpotifyApiClient",
    "SpotifyOAuthClient",
    "TokenGrant",
]
