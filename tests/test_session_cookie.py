try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import time

import pytest

from gazette.services.session_cookie import CookieSigner


def test_signed_value_round_trips() -> None:
    signer = CookieSigner("cookie-secret")

    assert signer.unsign(signer.sign("session-abc")) == "session-abc"


def test_tampered_value_is_rejected() -> None:
    signer = CookieSigner("cookie-secret")
    decoded = bytearray(base64.urlsafe_b64decode(signer.sign("session-abc")))
    decoded[-3] ^= 0x01
    forged = base64.urlsafe_b64encode(bytes(decoded)).decode("ascii")

    assert signer.unsign(forged) is None


def test_value_signed_with_other_secret_is_rejected() -> None:
    token = CookieSigner("someone-else").sign("session-abc")

    assert CookieSigner("cookie-secret").unsign(token) is None


@pytest.mark.parametrize("garbage", ["", "%%%", "c2hvcnQ="])
def test_malformed_values_are_rejected(garbage: str) -> None:
    assert CookieSigner("cookie-secret").unsign(garbage) is None


def test_stale_value_is_rejected(monkeypatch) -> None:
    signer = CookieSigner("cookie-secret")
    token = signer.sign("state-xyz")

    later = time.time() + 120
    monkeypatch.setattr(time, "time", lambda: later)

    assert signer.unsign(token, max_age_seconds=60) is None
    assert signer.unsign(token, max_age_seconds=600) == "state-xyz"
