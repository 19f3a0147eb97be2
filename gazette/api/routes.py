"""
FastAPI routes for the listening gazette.
"""

from __future__ import annotations

import hmac
import logging
from http import HTTPStatus
from typing import Annotated, Any, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from gazette.core.config import AppSettings
from gazette.core.errors import GazetteError
from gazette.dependencies import (
    get_app_settings,
    get_cookie_signer,
    get_login_flow_service,
    get_newspaper_service,
    get_principal_directory,
    get_session_id,
    get_session_store,
    get_spotify_api_client,
    require_access,
)
from gazette.schemas import (
    LoginResponse,
    MessageResponse,
    NewspaperData,
    RecentlyPlayedTrack,
    SessionStatus,
    SpotifyArtist,
    SpotifyTrack,
    SpotifyUser,
)
from gazette.services import AccessGrant, PrincipalDirectory

router = APIRouter()
logger = logging.getLogger(__name__)

GrantDependency = Annotated[AccessGrant, Depends(require_access)]


def _home_redirect(settings: AppSettings, error: Optional[str] = None) -> RedirectResponse:
    target = str(settings.frontend_base_url) if settings.frontend_base_url else "/"
    if error:
        target = f"{target}?{urlencode({'error': error})}"
    return RedirectResponse(url=target, status_code=HTTPStatus.FOUND)


def _set_cookie(
    response: Response, settings: AppSettings, name: str, value: str, max_age: int
) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        httponly=True,
        secure=settings.session.cookie_secure,
        samesite="lax",
    )


def _store_profile_snapshot(
    directory: PrincipalDirectory, principal_id: str, user: SpotifyUser
) -> None:
    current = directory.get(principal_id)
    if current is not None:
        directory.update(current.with_profile(user.model_dump(mode="json")))


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/login", response_model=LoginResponse)
async def start_spotify_login(
    response: Response,
    login_flow: Annotated[Any, Depends(get_login_flow_service)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    signer: Annotated[Any, Depends(get_cookie_signer)],
) -> LoginResponse:
    """Return the Spotify consent URL the browser should open."""
    state, login_url = login_flow.start()
    if settings.spotify.verify_state:
        _set_cookie(
            response,
            settings,
            settings.session.state_cookie_name,
            signer.sign(state),
            settings.session.state_ttl_seconds,
        )
    return LoginResponse(login_url=login_url)


@router.get("/callback")
async def handle_spotify_callback(
    request: Request,
    login_flow: Annotated[Any, Depends(get_login_flow_service)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    signer: Annotated[Any, Depends(get_cookie_signer)],
    code: Optional[str] = Query(default=None, description="Authorization code."),
    error: Optional[str] = Query(default=None, description="Error reported by Spotify."),
    state: Optional[str] = Query(default=None, description="State issued at login."),
) -> RedirectResponse:
    """Finish the authorization-code flow and open a session."""
    if error:
        logger.info("Spotify consent not granted: %s", error)
        return _home_redirect(settings, error="access_denied")
    if not code:
        return _home_redirect(settings, error="invalid_code")

    state_cookie = settings.session.state_cookie_name
    if settings.spotify.verify_state:
        expected = signer.unsign(
            request.cookies.get(state_cookie, ""),
            max_age_seconds=settings.session.state_ttl_seconds,
        )
        if not expected or not state or not hmac.compare_digest(expected, state):
            logger.warning("OAuth callback state did not match the issued state")
            response = _home_redirect(settings, error="state_mismatch")
            response.delete_cookie(state_cookie)
            return response

    try:
        session = await login_flow.complete(code)
    except GazetteError as exc:
        logger.warning(
            "OAuth callback failed with %s: %s", exc.__class__.__name__, exc.detail
        )
        return _home_redirect(settings, error="callback_failed")

    response = _home_redirect(settings)
    _set_cookie(
        response,
        settings,
        settings.session.cookie_name,
        signer.sign(session.session_id),
        settings.session.ttl_seconds,
    )
    response.delete_cookie(state_cookie)
    return response


@router.get("/session", response_model=SessionStatus)
async def get_session_status(
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    sessions: Annotated[Any, Depends(get_session_store)],
) -> SessionStatus:
    authenticated = bool(session_id) and sessions.get(session_id) is not None
    return SessionStatus(is_authenticated=authenticated)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    login_flow: Annotated[Any, Depends(get_login_flow_service)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> MessageResponse:
    """Destroy the session; the principal record is kept."""
    if session_id:
        login_flow.end(session_id)
    response.delete_cookie(settings.session.cookie_name)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=SpotifyUser)
async def get_user_profile(grant: GrantDependency) -> Any:
    """Profile captured at the most recent login or newspaper build."""
    snapshot = grant.principal.profile_snapshot
    if not snapshot:
        return JSONResponse(
            status_code=HTTPStatus.NOT_FOUND,
            content={"message": "User profile not found"},
        )
    return snapshot


@router.get("/top-tracks", response_model=List[SpotifyTrack])
async def get_top_tracks(
    grant: GrantDependency,
    api_client: Annotated[Any, Depends(get_spotify_api_client)],
) -> List[SpotifyTrack]:
    return await api_client.get_top_tracks(grant.access_token)


@router.get("/recently-played", response_model=List[RecentlyPlayedTrack])
async def get_recently_played(
    grant: GrantDependency,
    api_client: Annotated[Any, Depends(get_spotify_api_client)],
) -> List[RecentlyPlayedTrack]:
    return await api_client.get_recently_played(grant.access_token)


@router.get("/top-artists", response_model=List[SpotifyArtist])
async def get_top_artists(
    grant: GrantDependency,
    api_client: Annotated[Any, Depends(get_spotify_api_client)],
) -> List[SpotifyArtist]:
    return await api_client.get_top_artists(grant.access_token)


@router.get("/newspaper-data", response_model=NewspaperData)
async def get_newspaper_data(
    grant: GrantDependency,
    newspaper: Annotated[Any, Depends(get_newspaper_service)],
    directory: Annotated[Any, Depends(get_principal_directory)],
) -> NewspaperData:
    """Everything the front page renders, in one response."""
    data = await newspaper.build(grant.access_token)
    _store_profile_snapshot(directory, grant.principal.internal_id, data.user)
    return data
