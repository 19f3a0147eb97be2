"""
Front-page assembly: genre breakdown, listener mood and listening stats.

The heuristics here are cosmetic. Randomised phrasing draws from an injected
``random.Random`` so tests can seed it.
"""

from __future__ import annotations

import math
import random
from datetime import date
from typing import Dict, Iterable, List, Mapping, Sequence

from gazette.clients.spotify_api import SpotifyApiClient
from gazette.schemas import (
    GenreShare,
    ListeningHabit,
    ListeningStats,
    NewspaperData,
    SpotifyArtist,
    SpotifyTrack,
)

TOP_GENRE_LIMIT = 5
OTHER_GENRE = "Other"

# Checked in order against the top genre name; first substring match wins.
GENRE_MOODS: tuple[tuple[str, str], ...] = (
    ("pop", "Poppy"),
    ("rock", "Rock Enthusiast"),
    ("hip hop", "Hip"),
    ("rap", "Urban"),
    ("r&b", "Soulful"),
    ("indie", "Indie"),
    ("electronic", "Electronic"),
    ("dance", "Energetic"),
    ("classical", "Sophisticated"),
    ("jazz", "Cultured"),
    ("metal", "Intense"),
    ("alternative", "Alternative"),
    ("folk", "Folksy"),
    ("country", "Country"),
    ("blues", "Bluesy"),
    ("soul", "Soulful"),
)

POPULARITY_MOODS: tuple[tuple[float, str], ...] = (
    (80, "Trendsetter"),
    (60, "Mainstream"),
    (40, "Mixed"),
)
FALLBACK_MOOD = "Eclectic"

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# ~15 songs a day at ~3.5 minutes over a 30 day window.
_SONGS_PER_DAY = 15
_AVERAGE_SONG_MINUTES = 3.5
_DAYS_IN_PERIOD = 30


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def count_genres(artists: Iterable[SpotifyArtist]) -> Dict[str, int]:
    """Tally genre tags across artists, preserving first-seen order."""
    counts: Dict[str, int] = {}
    for artist in artists:
        for genre in artist.genres:
            counts[genre] = counts.get(genre, 0) + 1
    return counts


def aggregate_genres(counts: Mapping[str, int]) -> List[GenreShare]:
    """Percentage share of the top genres, padded with ``Other`` up to 100."""
    total = sum(counts.values())
    if total <= 0:
        return []
    shares = [
        GenreShare(name=name, percentage=_round_half_up(count / total * 100))
        for name, count in counts.items()
    ]
    shares.sort(key=lambda share: share.percentage, reverse=True)
    top = shares[:TOP_GENRE_LIMIT]
    remaining = 100 - sum(share.percentage for share in top)
    if remaining > 0 and top:
        top.append(GenreShare(name=OTHER_GENRE, percentage=remaining))
    return top


def average_popularity(artists: Sequence[SpotifyArtist]) -> float:
    if not artists:
        return 0.0
    return sum(artist.popularity or 0 for artist in artists) / len(artists)


def derive_mood(genres: Sequence[GenreShare], artists: Sequence[SpotifyArtist]) -> str:
    top_genre = (genres[0].name if genres else "Unknown").lower()
    for keyword, mood in GENRE_MOODS:
        if keyword in top_genre:
            return mood
    popularity = average_popularity(artists)
    for threshold, mood in POPULARITY_MOODS:
        if popularity > threshold:
            return mood
    return FALLBACK_MOOD


def generate_listening_stats(
    tracks: Sequence[SpotifyTrack],
    artists: Sequence[SpotifyArtist],
    *,
    rng: random.Random,
    today: date,
) -> ListeningStats:
    top_artist = artists[0].name if artists else "your favorite artist"
    top_track = tracks[0].name if tracks else "your top song"

    month_reasons = (
        f"{top_artist}'s new releases captivated you",
        "You discovered some amazing new music",
        "Perfect soundtrack for your activities",
        "REASON still being investigated. Probably heartbreak.",
    )
    fun_facts = (
        f"You've listened to {top_artist} more than 80% of other Spotify users.",
        "Your late night listening sessions have increased 34% compared to last year.",
        f"You've been in the top 2% of {top_artist} listeners this month.",
        f'"{top_track}" has been your go-to song when you need a mood boost.',
    )

    return ListeningStats(
        total_minutes=math.floor(_SONGS_PER_DAY * _AVERAGE_SONG_MINUTES * _DAYS_IN_PERIOD),
        top_month=_MONTHS[today.month - 1],
        top_month_reason=rng.choice(month_reasons),
        fun_fact=rng.choice(fun_facts),
        listening_habits=[
            ListeningHabit(title="Peak listening time", value="9PM - 11PM"),
            ListeningHabit(title="Favorite day", value=rng.choice(_WEEKDAYS)),
            ListeningHabit(title="Listening streak", value=f"{rng.randint(10, 59)} days"),
        ],
    )


class NewspaperService:
    """Fetch a listener's Spotify data and lay out the front page."""

    def __init__(
        self,
        api_client: SpotifyApiClient,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._api = api_client
        self._rng = rng or random.Random()

    async def build(self, access_token: str, *, today: date | None = None) -> NewspaperData:
        user = await self._api.get_profile(access_token)
        tracks = await self._api.get_top_tracks(access_token)
        artists = await self._api.get_top_artists(access_token)

        genres = aggregate_genres(count_genres(artists))
        return NewspaperData(
            user=user,
            top_tracks=tracks,
            top_artists=artists,
            genres=genres,
            stats=generate_listening_stats(
                tracks, artists, rng=self._rng, today=today or date.today()
            ),
            mood=derive_mood(genres, artists),
        )


__all__ = [
    "NewspaperService",
    "aggregate_genres",
    "average_popularity",
    "count_genres",
    "derive_mood",
    "generate_listening_stats",
]
