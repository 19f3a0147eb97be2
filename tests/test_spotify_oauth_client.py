try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from gazette.clients.spotify_auth import SpotifyOAuthClient
from gazette.core.config import SpotifySettings
from gazette.core.errors import UpstreamAuthError


def _settings() -> SpotifySettings:
    return SpotifySettings(
        SPOTIFY_CLIENT_ID="client",
        SPOTIFY_CLIENT_SECRET="secret",
        SPOTIFY_REDIRECT_URI="https://gazette.example/api/callback",
    )


class RecordingTransport(httpx.MockTransport):
    def __init__(self, status_code: int = 200, payload: dict | None = None) -> None:
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if status_code != 200:
                return httpx.Response(status_code, text='{"error":"invalid_grant"}')
            return httpx.Response(200, json=payload or {})

        super().__init__(handler)


def test_authorization_url_carries_flow_parameters() -> None:
    client = SpotifyOAuthClient(_settings())

    url = client.build_authorization_url(state="abc123")

    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == SpotifyOAuthClient.AUTH_BASE_URL
    query = parse_qs(parsed.query)
    assert query["response_type"] == ["code"]
    assert query["client_id"] == ["client"]
    assert query["redirect_uri"] == ["https://gazette.example/api/callback"]
    assert query["state"] == ["abc123"]
    assert query["scope"] == [
        "user-read-private user-read-email user-top-read user-read-recently-played"
    ]


def test_generated_state_is_fixed_length_alphanumeric() -> None:
    states = {SpotifyOAuthClient.generate_state() for _ in range(20)}

    assert len(states) == 20
    for state in states:
        assert len(state) == 16
        assert state.isalnum() and state.isascii()


def test_scopes_accept_comma_separated_string() -> None:
    settings = SpotifySettings(
        SPOTIFY_CLIENT_ID="client",
        SPOTIFY_CLIENT_SECRET="secret",
        SPOTIFY_SCOPES="user-top-read, user-read-email",
    )

    assert settings.scopes == ("user-top-read", "user-read-email")


@pytest.mark.anyio
async def test_exchange_posts_form_with_basic_auth() -> None:
    transport = RecordingTransport(
        payload={"access_token": "acc", "refresh_token": "ref", "expires_in": 3600}
    )
    client = SpotifyOAuthClient(_settings(), transport=transport)

    grant = await client.exchange_authorization_code("the-code")

    assert (grant.access_token, grant.refresh_token, grant.expires_in) == ("acc", "ref", 3600)
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == SpotifyOAuthClient.TOKEN_URL
    expected_auth = base64.b64encode(b"client:secret").decode("ascii")
    assert request.headers["authorization"] == f"Basic {expected_auth}"
    form = parse_qs(request.content.decode("utf-8"))
    assert form == {
        "grant_type": ["authorization_code"],
        "code": ["the-code"],
        "redirect_uri": ["https://gazette.example/api/callback"],
    }


@pytest.mark.anyio
async def test_exchange_failure_keeps_body_in_detail() -> None:
    client = SpotifyOAuthClient(_settings(), transport=RecordingTransport(status_code=400))

    with pytest.raises(UpstreamAuthError) as excinfo:
        await client.exchange_authorization_code("bad-code")

    assert "invalid_grant" in excinfo.value.detail
    assert "invalid_grant" not in str(excinfo.value)


@pytest.mark.anyio
async def test_exchange_rejects_incomplete_payload() -> None:
    transport = RecordingTransport(payload={"access_token": "acc", "expires_in": 3600})
    client = SpotifyOAuthClient(_settings(), transport=transport)

    with pytest.raises(UpstreamAuthError):
        await client.exchange_authorization_code("code")


@pytest.mark.anyio
async def test_exchange_rejects_non_numeric_lifetime() -> None:
    transport = RecordingTransport(
        payload={"access_token": "acc", "refresh_token": "ref", "expires_in": "soon"}
    )
    client = SpotifyOAuthClient(_settings(), transport=transport)

    with pytest.raises(UpstreamAuthError) as excinfo:
        await client.exchange_authorization_code("code")

    assert "soon" in excinfo.value.detail


@pytest.mark.anyio
async def test_exchange_rejects_json_that_is_not_an_object() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "an", "object"])

    client = SpotifyOAuthClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamAuthError):
        await client.exchange_authorization_code("code")


@pytest.mark.anyio
async def test_refresh_rejects_non_numeric_lifetime() -> None:
    transport = RecordingTransport(payload={"access_token": "fresh", "expires_in": "soon"})
    client = SpotifyOAuthClient(_settings(), transport=transport)

    with pytest.raises(UpstreamAuthError):
        await client.refresh_access_token("stored-refresh")


@pytest.mark.anyio
async def test_refresh_without_rotation_returns_no_refresh_token() -> None:
    transport = RecordingTransport(payload={"access_token": "fresh", "expires_in": 1800})
    client = SpotifyOAuthClient(_settings(), transport=transport)

    grant = await client.refresh_access_token("stored-refresh")

    assert grant.access_token == "fresh"
    assert grant.expires_in == 1800
    assert grant.refresh_token is None
    form = parse_qs(transport.requests[0].content.decode("utf-8"))
    assert form == {"grant_type": ["refresh_token"], "refresh_token": ["stored-refresh"]}


@pytest.mark.anyio
async def test_refresh_surfaces_rotated_refresh_token() -> None:
    transport = RecordingTransport(
        payload={"access_token": "fresh", "expires_in": 3600, "refresh_token": "rotated"}
    )
    client = SpotifyOAuthClient(_settings(), transport=transport)

    grant = await client.refresh_access_token("stored-refresh")

    assert grant.refresh_token == "rotated"


@pytest.mark.anyio
async def test_refresh_failure_is_not_retried() -> None:
    transport = RecordingTransport(status_code=401)
    client = SpotifyOAuthClient(_settings(), transport=transport)

    with pytest.raises(UpstreamAuthError):
        await client.refresh_access_token("revoked")

    assert len(transport.requests) == 1


@pytest.mark.anyio
async def test_timeout_is_reported_as_upstream_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = SpotifyOAuthClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamAuthError):
        await client.refresh_access_token("stored-refresh")
