"""
Accessors for the per-application objects create_app() builds.

Everything lives in app.extensions["filmfolk"]; handlers and decorators
reach it through current_app instead of importing module-level globals.
"""
from __future__ import annotations

from flask import current_app

EXTENSION_KEY = "filmfolk"


def _ext() -> dict:
    return current_app.extensions[EXTENSION_KEY]


def get_storage():
    return _ext()["storage"]


def get_session():
    return get_storage().get_session()


def get_token_issuer():
    return _ext()["token_issuer"]


def get_auth_service():
    return _ext()["auth_service"]


def get_oauth_client():
    return _ext()["google_oauth"]


def get_rate_limiter(name: str):
    return _ext()["rate_limiters"].get(name)
