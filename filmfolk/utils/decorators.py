from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import request, g

from filmfolk.api.context import get_token_issuer
from filmfolk.models.account import Role
from filmfolk.utils.exceptions import AuthenticationError, ForbiddenError, InvalidTokenError
from filmfolk.utils.security import SessionClaims

logger = logging.getLogger(__name__)

MISSING_HEADER = "Authorization header required"
BAD_FORMAT = "Invalid authorization format. Use: Bearer <token>"
BAD_TOKEN = "Invalid or expired token"


def _claims_from_request() -> SessionClaims:
    """Header -> bearer token -> validated claims. Raises AuthenticationError."""
    header = request.headers.get("Authorization")
    if not header:
        raise AuthenticationError(MISSING_HEADER)

    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError(BAD_FORMAT)

    try:
        return get_token_issuer().validate_access_token(parts[1])
    except InvalidTokenError as exc:
        raise AuthenticationError(BAD_TOKEN) from exc


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = _claims_from_request()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def jwt_optional():
    """Same pipeline as jwt_required, but a failure leaves the caller anonymous."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                g.current_user = _claims_from_request()
            except AuthenticationError:
                g.current_user = None
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def has_required_role(role, required) -> bool:
    """
    True when role ranks at or above required in user < moderator < admin.
    Unknown values on either side never pass.
    """
    have = Role.parse(role)
    need = Role.parse(required)
    if have is None or need is None:
        return False
    return have.level >= need.level


def check_role(required) -> None:
    claims: Optional[SessionClaims] = getattr(g, "current_user", None)
    role = claims.role if claims else None
    if not has_required_role(role, required):
        logger.info("role check failed: required=%s have=%s", getattr(required, "value", required), role)
        raise ForbiddenError("Insufficient permissions")


def roles_required(min_role):
    """
    Allow access if the caller's role is at least min_role.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            check_role(min_role)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def current_user() -> Optional[SessionClaims]:
    return getattr(g, "current_user", None)


def is_at_least(role) -> bool:
    claims = current_user()
    return bool(claims) and has_required_role(claims.role, role)
