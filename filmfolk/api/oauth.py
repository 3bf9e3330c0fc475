"""
Google sign-in:
- GET /auth/google           -> sets a CSRF state cookie, redirects to Google
- GET /auth/google/callback  -> checks state, exchanges code, redirects to the frontend

Every outcome of the callback is a redirect; the frontend reads tokens or
an error code/message from the query string.
"""
from __future__ import annotations

import hmac
import logging
import secrets
from urllib.parse import urlencode

from flask import Blueprint, current_app, redirect, request

from filmfolk.api.context import get_auth_service, get_oauth_client
from filmfolk.utils.exceptions import FilmfolkError

logger = logging.getLogger(__name__)

bp = Blueprint("oauth", __name__, url_prefix="/auth")

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 600  # 10 minutes


def _frontend(path: str, **params) -> str:
    return f"{current_app.config['FRONTEND_URL']}{path}?{urlencode(params)}"


def _redirect_error(code: str, message: str):
    resp = redirect(_frontend("/auth/error", code=code, message=message), code=307)
    resp.delete_cookie(STATE_COOKIE, path="/")
    return resp


@bp.get("/google")
def google_login():
    """
    Start Google OAuth login
    ---
    tags:
      - Auth
    responses:
      307:
        description: Redirect to Google consent screen
      502:
        description: Google OAuth not configured
    """
    state = secrets.token_urlsafe(32)
    url = get_oauth_client().authorization_url(state)
    resp = redirect(url, code=307)
    resp.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_MAX_AGE,
        path="/",
        httponly=True,
        secure=request.is_secure,
        samesite="Lax",
    )
    return resp


@bp.get("/google/callback")
def google_callback():
    """
    Handle Google OAuth callback
    ---
    tags:
      - Auth
    parameters:
      - in: query
        name: code
        type: string
      - in: query
        name: state
        type: string
    responses:
      307:
        description: Redirect to the frontend with tokens or an error
    """
    state = request.args.get("state", "")
    cookie_state = request.cookies.get(STATE_COOKIE, "")
    if not state or not cookie_state or not hmac.compare_digest(state, cookie_state):
        logger.warning("oauth callback with invalid state")
        return _redirect_error("invalid_state", "Invalid OAuth state")

    if request.args.get("error"):
        description = request.args.get("error_description") or "OAuth authentication failed"
        return _redirect_error(request.args["error"], description)

    code = request.args.get("code")
    if not code:
        return _redirect_error("no_code", "No authorization code received")

    try:
        info = get_oauth_client().fetch_user_info(code)
        tokens = get_auth_service().social_login(info)
    except FilmfolkError as err:
        logger.info("google sign-in failed: %s", err.message)
        return _redirect_error("auth_failed", err.message)

    resp = redirect(
        _frontend("/auth/callback", access_token=tokens.access_token, refresh_token=tokens.refresh_token),
        code=307,
    )
    resp.delete_cookie(STATE_COOKIE, path="/")
    return resp
