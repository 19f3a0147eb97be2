"""Expose dependency helpers for FastAPI routers."""

from .auth import get_session_id, require_access
from .clients import (
    get_access_guard,
    get_cookie_signer,
    get_login_flow_service,
    get_newspaper_service,
    get_principal_directory,
    get_session_store,
    get_spotify_api_client,
    get_spotify_oauth_client,
    get_token_cipher_service,
)
from .config import get_app_settings

__all__ = [
    "get_access_guard",
    "get_app_settings",
    "get_cookie_signer",
    "get_login_flow_service",
    "get_newspaper_service",
    "get_principal_directory",
    "get_session_id",
    "get_session_store",
    "get_spotify_api_client",
    "get_spotify_oauth_client",
    "get_token_cipher_service",
    "require_access",
]
