"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me

The implementation:
- Uses bcrypt for password hashing (via filmfolk.utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Stores refresh tokens in the ledger table so logout can revoke them
- refresh returns a new access token and the same refresh token (no rotation)
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from filmfolk.api.context import get_auth_service, get_storage
from filmfolk.api.middleware import rate_limited
from filmfolk.models.account import Account
from filmfolk.models.schemas.account import (
    AccountOutSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
)
from filmfolk.utils.decorators import jwt_required
from filmfolk.utils.exceptions import NotFoundError

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
account_out_schema = AccountOutSchema()


@bp.post("/register")
@rate_limited("auth")
def register():
    """
    Register a new account with email and password.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [username, email, password]
          properties:
            username: { type: string, minLength: 3, maxLength: 50 }
            email: { type: string, format: email }
            password: { type: string, minLength: 8 }
    responses:
      201:
        description: Created (returns tokens)
      400:
        description: Validation error
      409:
        description: Email or username already taken
      429:
        description: Too many attempts
    """
    data = register_schema.load(request.get_json(silent=True) or {})
    tokens = get_auth_service().register(data["username"], data["email"], data["password"])
    return jsonify(tokens.to_dict()), 201


@bp.post("/login")
@rate_limited("auth")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: invalid email or password
      403:
        description: Account suspended or banned
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    tokens = get_auth_service().login(data["email"], data["password"])
    return jsonify(tokens.to_dict()), 200


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain a new access token.
    The refresh token itself is returned unchanged.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Refresh token invalid, unknown, expired or revoked
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    tokens = get_auth_service().refresh(data["refresh_token"])
    return jsonify(tokens.to_dict()), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh token. Repeating it is harmless.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: Logged out
      400:
        description: refresh_token missing
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    get_auth_service().logout(data["refresh_token"])
    return jsonify({"message": "Logged out successfully"}), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current account info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    account = get_storage().get(Account, g.current_user.account_id)
    if account is None:
        raise NotFoundError("account not found")
    return jsonify(account_out_schema.dump(account)), 200
