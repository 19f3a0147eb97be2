"""Application exception types.

Each error carries the HTTP status and the generic message shown to clients.
``detail`` holds diagnostic context (such as an upstream response body) and is
only ever written to logs.
"""

from __future__ import annotations

from http import HTTPStatus


class GazetteError(Exception):
    """Base class for errors surfaced by the API."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    public_message: str = "Unexpected error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(message or self.public_message)


class Unauthenticated(GazetteError):
    """No usable session, principal, or access token for the request."""

    status_code = HTTPStatus.UNAUTHORIZED
    public_message = "Authentication required"


class UpstreamAuthError(GazetteError):
    """The Spotify accounts service rejected a token request or timed out."""

    status_code = HTTPStatus.BAD_GATEWAY
    public_message = "Authentication with Spotify failed"


class UpstreamDataError(GazetteError):
    """A Spotify Web API call failed."""

    status_code = HTTPStatus.BAD_GATEWAY
    public_message = "Failed to fetch data from Spotify"


class PayloadValidationError(GazetteError):
    """A Spotify payload did not have the expected shape."""

    status_code = HTTPStatus.BAD_GATEWAY
    public_message = "Received unexpected data from Spotify"


__all__ = [
    "GazetteError",
    "PayloadValidationError",
    "Unauthenticated",
    "UpstreamAuthError",
    "UpstreamDataError",
]
