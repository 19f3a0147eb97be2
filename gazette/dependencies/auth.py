"""
Request-scoped authentication dependencies.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request

from gazette.core.config import AppSettings
from gazette.services import AccessGrant, AccessGuard, CookieSigner

from .clients import get_access_guard, get_cookie_signer
from .config import get_app_settings


def get_session_id(
    request: Request,
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    signer: Annotated[CookieSigner, Depends(get_cookie_signer)],
) -> Optional[str]:
    """Session id from the signed session cookie, or ``None``."""
    raw = request.cookies.get(settings.session.cookie_name)
    if not raw:
        return None
    return signer.unsign(raw, max_age_seconds=settings.session.ttl_seconds)


async def require_access(
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    guard: Annotated[AccessGuard, Depends(get_access_guard)],
) -> AccessGrant:
    """Gate a route behind a principal with a fresh access token."""
    return await guard.ensure_access(session_id)


__all__ = ["get_session_id", "require_access"]
