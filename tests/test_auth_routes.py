try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import copy
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from fakes import FakeApiClient, FakeOAuthClient
from gazette.main import app
from gazette.services import (
    AccessGuard,
    CookieSigner,
    InMemoryPrincipalDirectory,
    InMemorySessionStore,
    LoginFlowService,
)


@pytest.fixture()
def auth_env():
    from gazette import dependencies
    from gazette.core.config import get_settings

    oauth_client = FakeOAuthClient()
    api_client = FakeApiClient()
    directory = InMemoryPrincipalDirectory()
    sessions = InMemorySessionStore()
    signer = CookieSigner("route-secret")
    settings = copy.deepcopy(get_settings())
    settings.frontend_base_url = None

    login_flow = LoginFlowService(
        oauth_client=oauth_client,
        api_client=api_client,
        directory=directory,
        sessions=sessions,
    )
    guard = AccessGuard(directory=directory, sessions=sessions, oauth_client=oauth_client)

    app.dependency_overrides.update(
        {
            dependencies.get_login_flow_service: lambda: login_flow,
            dependencies.get_access_guard: lambda: guard,
            dependencies.get_session_store: lambda: sessions,
            dependencies.get_principal_directory: lambda: directory,
            dependencies.get_cookie_signer: lambda: signer,
            dependencies.get_app_settings: lambda: settings,
        }
    )

    yield {
        "oauth": oauth_client,
        "api": api_client,
        "directory": directory,
        "sessions": sessions,
        "settings": settings,
    }

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


@pytest.mark.anyio
async def test_login_returns_consent_url(auth_env):
    async with _client() as client:
        response = await client.get("/api/login")

    assert response.status_code == 200
    login_url = response.json()["loginUrl"]
    state = parse_qs(urlparse(login_url).query)["state"][0]
    assert state == auth_env["oauth"].states[-1]
    assert len(state) == 16
    assert "set-cookie" not in response.headers


@pytest.mark.anyio
async def test_callback_with_error_skips_exchange(auth_env):
    async with _client() as client:
        response = await client.get(
            "/api/callback", params={"error": "access_denied", "code": "ignored"}
        )

    assert response.status_code == 302
    assert response.headers["location"] == "/?error=access_denied"
    assert auth_env["oauth"].codes == []


@pytest.mark.anyio
async def test_callback_without_code_is_rejected(auth_env):
    async with _client() as client:
        response = await client.get("/api/callback")

    assert response.status_code == 302
    assert response.headers["location"] == "/?error=invalid_code"
    assert auth_env["oauth"].codes == []


@pytest.mark.anyio
async def test_callback_creates_principal_and_session(auth_env):
    async with _client() as client:
        response = await client.get("/api/callback", params={"code": "code-1"})
        status = await client.get("/api/session")

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    assert auth_env["settings"].session.cookie_name in response.cookies
    assert status.json() == {"isAuthenticated": True}

    principal = auth_env["directory"].get_by_provider_id("listener-1")
    assert principal is not None
    assert principal.access_token == "access-1"
    assert principal.profile_snapshot["display_name"] == "Ada Listener"
    assert auth_env["api"].tokens == ["access-1"]


@pytest.mark.anyio
async def test_repeat_login_updates_existing_principal(auth_env):
    async with _client() as client:
        await client.get("/api/callback", params={"code": "code-1"})
        first = auth_env["directory"].get_by_provider_id("listener-1")
        await client.get("/api/callback", params={"code": "code-2"})

    second = auth_env["directory"].get_by_provider_id("listener-1")
    assert second.internal_id == first.internal_id
    assert second.access_token == "access-2"
    assert second.refresh_token == "refresh-2"
    assert second.token_expiry >= first.token_expiry
    assert len(auth_env["directory"]._by_id) == 1


@pytest.mark.anyio
async def test_failed_exchange_redirects_with_generic_tag(auth_env):
    auth_env["oauth"].fail_exchange = True

    async with _client() as client:
        response = await client.get("/api/callback", params={"code": "bad"})
        status = await client.get("/api/session")

    assert response.status_code == 302
    assert response.headers["location"] == "/?error=callback_failed"
    assert "invalid_grant" not in response.text
    assert status.json() == {"isAuthenticated": False}
    assert auth_env["directory"].get_by_provider_id("listener-1") is None


@pytest.mark.anyio
async def test_callback_redirects_to_frontend_when_configured(auth_env):
    auth_env["settings"].frontend_base_url = "https://gazette.example/"

    async with _client() as client:
        denied = await client.get("/api/callback", params={"error": "access_denied"})
        ok = await client.get("/api/callback", params={"code": "code-1"})

    assert denied.headers["location"] == "https://gazette.example/?error=access_denied"
    assert ok.headers["location"] == "https://gazette.example/"


@pytest.mark.anyio
async def test_logout_ends_session_but_keeps_principal(auth_env):
    async with _client() as client:
        await client.get("/api/callback", params={"code": "code-1"})
        response = await client.post("/api/logout")
        client.cookies.clear()
        status = await client.get("/api/session")

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}
    assert status.json() == {"isAuthenticated": False}
    assert auth_env["sessions"]._sessions == {}
    assert auth_env["directory"].get_by_provider_id("listener-1") is not None


@pytest.mark.anyio
async def test_forged_session_cookie_is_not_authenticated(auth_env):
    cookie_name = auth_env["settings"].session.cookie_name
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
        cookies={cookie_name: "forged-value"},
    ) as client:
        response = await client.get("/api/session")

    assert response.json() == {"isAuthenticated": False}


@pytest.mark.anyio
async def test_state_verification_rejects_mismatch_when_enabled(auth_env):
    auth_env["settings"].spotify.verify_state = True

    async with _client() as client:
        login = await client.get("/api/login")
        state = auth_env["oauth"].states[-1]
        assert auth_env["settings"].session.state_cookie_name in login.cookies

        mismatch = await client.get(
            "/api/callback", params={"code": "code-1", "state": "not-the-state"}
        )
        assert mismatch.headers["location"] == "/?error=state_mismatch"
        assert auth_env["oauth"].codes == []

        await client.get("/api/login")
        state = auth_env["oauth"].states[-1]
        accepted = await client.get(
            "/api/callback", params={"code": "code-1", "state": state}
        )

    assert accepted.headers["location"] == "/"
    assert auth_env["oauth"].codes == ["code-1"]
