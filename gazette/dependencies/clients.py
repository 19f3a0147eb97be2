"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

import logging
import random
from functools import lru_cache

from gazette.clients import SpotifyApiClient, SpotifyOAuthClient
from gazette.core.config import get_settings
from gazette.services import (
    AccessGuard,
    CookieSigner,
    InMemoryPrincipalDirectory,
    InMemorySessionStore,
    LoginFlowService,
    NewspaperService,
    PrincipalDirectory,
    SessionStore,
    SQLitePrincipalDirectory,
    SQLiteSessionStore,
    TokenCipherService,
)

logger = logging.getLogger(__name__)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_spotify_oauth_client() -> SpotifyOAuthClient:
    """Create a singleton Spotify OAuth client."""
    return SpotifyOAuthClient(_settings().spotify)


@lru_cache()
def get_spotify_api_client() -> SpotifyApiClient:
    """Provide the Spotify Web API client."""
    return SpotifyApiClient(timeout_seconds=_settings().spotify.http_timeout_seconds)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.spotify.client_secret
    return TokenCipherService(
        secret=secret, previous_secrets=settings.security.previous_secrets
    )


@lru_cache()
def get_cookie_signer() -> CookieSigner:
    """Sign session and state cookies with the session secret."""
    settings = _settings()
    if (
        settings.environment == "production"
        and settings.session.secret == "spotify-newspaper-secret"
    ):
        logger.warning("SESSION_SECRET is unset; using the built-in development secret.")
    return CookieSigner(secret_key=settings.session.secret)


@lru_cache()
def get_principal_directory() -> PrincipalDirectory:
    """Provide the process-wide user directory."""
    settings = _settings()
    if settings.storage.backend == "sqlite":
        return SQLitePrincipalDirectory(
            settings.storage.db_path, token_cipher=get_token_cipher_service()
        )
    return InMemoryPrincipalDirectory()


@lru_cache()
def get_session_store() -> SessionStore:
    """Provide the process-wide session store."""
    settings = _settings()
    if settings.storage.backend == "sqlite":
        return SQLiteSessionStore(
            settings.storage.db_path, ttl_seconds=settings.session.ttl_seconds
        )
    return InMemorySessionStore(ttl_seconds=settings.session.ttl_seconds)


@lru_cache()
def get_access_guard() -> AccessGuard:
    """Provide the shared access guard; it owns the per-principal refresh locks."""
    return AccessGuard(
        directory=get_principal_directory(),
        sessions=get_session_store(),
        oauth_client=get_spotify_oauth_client(),
    )


def get_login_flow_service() -> LoginFlowService:
    """Build the login flow service from shared clients and stores."""
    return LoginFlowService(
        oauth_client=get_spotify_oauth_client(),
        api_client=get_spotify_api_client(),
        directory=get_principal_directory(),
        sessions=get_session_store(),
    )


@lru_cache()
def get_newspaper_service() -> NewspaperService:
    """Provide the newspaper assembler with a process-wide random source."""
    return NewspaperService(get_spotify_api_client(), rng=random.Random())


__all__ = [
    "get_access_guard",
    "get_cookie_signer",
    "get_login_flow_service",
    "get_newspaper_service",
    "get_principal_directory",
    "get_session_store",
    "get_spotify_api_client",
    "get_spotify_oauth_client",
    "get_token_cipher_service",
]
