"""Spotify listening statistics service behind the newspaper front page."""

__version__ = "0.1.0"
