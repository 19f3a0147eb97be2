"""
Application configuration models and helpers.

Settings are grouped per concern (Spotify, sessions, token encryption, storage)
and assembled into a single ``AppSettings`` object shared by the FastAPI app.
"""

from functools import lru_cache
from typing import Annotated, Literal, Optional

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _env_config() -> SettingsConfigDict:
    """Every settings group reads the process environment, then `.env`."""
    return SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def _split_csv(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    if isinstance(value, (tuple, list)):
        return tuple(value)
    return tuple(item.strip() for item in value.split(",") if item.strip())


class SpotifySettings(BaseSettings):
    """Credentials and flow options for the Spotify accounts service."""

    model_config = _env_config()

    client_id: str = Field(..., validation_alias="SPOTIFY_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="SPOTIFY_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(
        "http://localhost:5000/api/callback",
        validation_alias="SPOTIFY_REDIRECT_URI",
    )
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "user-read-private",
            "user-read-email",
            "user-top-read",
            "user-read-recently-played",
        ),
        validation_alias="SPOTIFY_SCOPES",
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="SPOTIFY_HTTP_TIMEOUT")
    verify_state: bool = Field(
        False,
        validation_alias="SPOTIFY_VERIFY_STATE",
        description="Reject callbacks whose state does not match the issued one.",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class SessionSettings(BaseSettings):
    """Browser session cookie configuration."""

    model_config = _env_config()

    secret: str = Field("spotify-newspaper-secret", validation_alias="SESSION_SECRET")
    cookie_name: str = Field("gazette_session", validation_alias="SESSION_COOKIE_NAME")
    state_cookie_name: str = Field(
        "gazette_oauth_state", validation_alias="SESSION_STATE_COOKIE_NAME"
    )
    ttl_seconds: int = Field(24 * 60 * 60, validation_alias="SESSION_TTL_SECONDS")
    state_ttl_seconds: int = Field(600, validation_alias="OAUTH_STATE_TTL")
    cookie_secure: bool = Field(False, validation_alias="SESSION_COOKIE_SECURE")


class SecuritySettings(BaseSettings):
    """Secrets protecting tokens at rest."""

    model_config = _env_config()

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description="Secret used to derive the key for encrypting stored tokens.",
    )
    previous_secrets: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Retired secrets that can still decrypt existing records.",
    )

    @field_validator("previous_secrets", mode="before")
    @classmethod
    def _split_previous(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_csv(value)


class StorageSettings(BaseSettings):
    """Where principals and sessions are kept."""

    model_config = _env_config()

    backend: Literal["memory", "sqlite"] = Field(
        "memory", validation_alias="STORAGE_BACKEND"
    )
    db_path: str = Field("data/gazette.db", validation_alias="STORAGE_DB_PATH")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = _env_config()

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Optional URL the OAuth callback redirects back to.",
    )
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "SecuritySettings",
    "SessionSettings",
    "SpotifySettings",
    "StorageSettings",
    "get_settings",
]
