"""
Google OAuth2 authorization-code flow via Authlib's requests integration.
"""
from __future__ import annotations

import logging

import requests
from authlib.integrations.requests_client import OAuth2Session, OAuthError

from filmfolk.models.account import AuthProvider
from filmfolk.services.auth_service import ProviderUserInfo
from filmfolk.utils.exceptions import DependencyError, ValidationError

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)


class GoogleOAuthClient:
    def __init__(self, client_id: str | None, client_secret: str | None, redirect_uri: str | None, timeout: int = 10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)

    def _session(self) -> OAuth2Session:
        if not self.configured:
            raise DependencyError("Google OAuth is not configured")
        return OAuth2Session(
            self.client_id,
            self.client_secret,
            scope=" ".join(GOOGLE_SCOPES),
            redirect_uri=self.redirect_uri,
        )

    def authorization_url(self, state: str) -> str:
        url, _ = self._session().create_authorization_url(
            GOOGLE_AUTHORIZE_URL, state=state, access_type="offline"
        )
        return url

    def fetch_user_info(self, code: str) -> ProviderUserInfo:
        """Exchange the code for a token and read the profile it grants access to."""
        session = self._session()
        try:
            session.fetch_token(GOOGLE_TOKEN_URL, code=code, timeout=self.timeout)
            resp = session.get(GOOGLE_USERINFO_URL, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (OAuthError, requests.RequestException, ValueError) as exc:
            logger.warning("google oauth exchange failed: %s", exc.__class__.__name__)
            raise DependencyError("failed to exchange code with Google") from exc

        if not data.get("verified_email"):
            raise ValidationError("email not verified with Google")
        if not data.get("id") or not data.get("email"):
            raise DependencyError("incomplete user info from Google")

        return ProviderUserInfo(
            provider=AuthProvider.GOOGLE,
            provider_id=str(data["id"]),
            email=data["email"],
            name=data.get("name") or "",
            given_name=data.get("given_name") or "",
            picture=data.get("picture"),
        )
