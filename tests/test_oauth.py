"""
Tests for the Google sign-in redirect flow. The Google client's network
exchange is replaced with a stub.
"""
from urllib.parse import parse_qs, urlparse

import pytest

from filmfolk.models.account import Account, AuthProvider
from filmfolk.services.auth_service import ProviderUserInfo
from filmfolk.services.oauth_service import GOOGLE_AUTHORIZE_URL
from filmfolk.utils.exceptions import DependencyError, ValidationError

START = "/api/v1/auth/google"
CALLBACK = "/api/v1/auth/google/callback"


@pytest.fixture
def google(app):
    return app.extensions["filmfolk"]["google_oauth"]


@pytest.fixture
def google_user(monkeypatch, google):
    info = ProviderUserInfo(
        provider=AuthProvider.GOOGLE,
        provider_id="google-123",
        email="gina@gmail.com",
        name="Gina Lollo",
        given_name="Gina",
    )
    monkeypatch.setattr(google, "fetch_user_info", lambda code: info)
    return info


def _query(resp):
    parsed = urlparse(resp.headers["Location"])
    return parsed, {k: v[0] for k, v in parse_qs(parsed.query).items()}


def _callback(client, **params):
    client.set_cookie("oauth_state", "the-state")
    return client.get(CALLBACK, query_string={"state": "the-state", **params})


class TestGoogleLogin:
    def test_redirects_to_google_with_state_cookie(self, client):
        resp = client.get(START)
        assert resp.status_code == 307
        assert resp.headers["Location"].startswith(GOOGLE_AUTHORIZE_URL)

        cookie = resp.headers["Set-Cookie"]
        assert cookie.startswith("oauth_state=")
        assert "HttpOnly" in cookie
        state = cookie.split(";", 1)[0].split("=", 1)[1]
        _, params = _query(resp)
        assert params["state"] == state
        assert params["client_id"] == "test-client-id"

    def test_unconfigured_client(self, client, google, monkeypatch):
        monkeypatch.setattr(google, "client_id", None)
        resp = client.get(START)
        assert resp.status_code == 502


class TestGoogleCallback:
    def test_success_redirects_with_tokens(self, client, storage, google_user):
        resp = _callback(client, code="auth-code")
        assert resp.status_code == 307
        parsed, params = _query(resp)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "http://frontend.test/auth/callback"
        assert params["access_token"] and params["refresh_token"]

        account = storage.get_session().query(Account).filter(Account.provider_id == "google-123").one()
        assert account.username == "Gina"

    def test_state_mismatch(self, client, google_user):
        client.set_cookie("oauth_state", "cookie-state")
        resp = client.get(CALLBACK, query_string={"state": "other-state", "code": "c"})
        parsed, params = _query(resp)
        assert parsed.path == "/auth/error"
        assert params["code"] == "invalid_state"

    def test_missing_cookie(self, client, google_user):
        resp = client.get(CALLBACK, query_string={"state": "s", "code": "c"})
        _, params = _query(resp)
        assert params["code"] == "invalid_state"

    def test_provider_error(self, client):
        resp = _callback(client, error="access_denied", error_description="User said no")
        _, params = _query(resp)
        assert params == {"code": "access_denied", "message": "User said no"}

    def test_missing_code(self, client):
        _, params = _query(_callback(client))
        assert params["code"] == "no_code"

    def test_email_conflict(self, client, make_account, google, monkeypatch):
        existing = make_account()
        info = ProviderUserInfo(provider=AuthProvider.GOOGLE, provider_id="g-2", email=existing.email)
        monkeypatch.setattr(google, "fetch_user_info", lambda code: info)

        _, params = _query(_callback(client, code="c"))
        assert params["code"] == "auth_failed"
        assert params["message"] == "email already registered with different login method"

    @pytest.mark.parametrize("error", [DependencyError("failed to exchange code with Google"),
                                       ValidationError("email not verified with Google")])
    def test_exchange_failures(self, client, google, monkeypatch, error):
        def _raise(code):
            raise error

        monkeypatch.setattr(google, "fetch_user_info", _raise)
        _, params = _query(_callback(client, code="c"))
        assert params["code"] == "auth_failed"
        assert params["message"] == error.message
