"""
Tests for the bearer-token gate and the role hierarchy.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from filmfolk.models.account import Role
from filmfolk.utils.decorators import BAD_FORMAT, BAD_TOKEN, MISSING_HEADER, has_required_role

ME = "/api/v1/auth/me"
PENDING = "/api/v1/moderator/movies/pending"


class TestHasRequiredRole:
    @pytest.mark.parametrize(
        "role, required, expected",
        [
            (Role.USER, Role.USER, True),
            (Role.USER, Role.MODERATOR, False),
            (Role.USER, Role.ADMIN, False),
            (Role.MODERATOR, Role.USER, True),
            (Role.MODERATOR, Role.MODERATOR, True),
            (Role.MODERATOR, Role.ADMIN, False),
            (Role.ADMIN, Role.USER, True),
            (Role.ADMIN, Role.MODERATOR, True),
            (Role.ADMIN, Role.ADMIN, True),
        ],
    )
    def test_hierarchy(self, role, required, expected):
        assert has_required_role(role, required) is expected

    def test_plain_strings_are_parsed(self):
        assert has_required_role("admin", "moderator")
        assert not has_required_role("user", "moderator")

    @pytest.mark.parametrize("role, required", [("superuser", Role.USER), (None, Role.USER), (Role.ADMIN, "owner")])
    def test_unknown_roles_never_pass(self, role, required):
        assert not has_required_role(role, required)


class TestBearerGate:
    def test_missing_header(self, client):
        resp = client.get(ME)
        assert resp.status_code == 401
        assert resp.get_json() == {"error": MISSING_HEADER}

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer ", "bearer abc", "Bearer a b"])
    def test_malformed_header(self, client, header):
        resp = client.get(ME, headers={"Authorization": header})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == BAD_FORMAT

    def test_invalid_token(self, client):
        resp = client.get(ME, headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == BAD_TOKEN

    def test_expired_token(self, client, issuer, user):
        token = issuer.issue_access_token(user, -1)
        resp = client.get(ME, headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == BAD_TOKEN

    def test_valid_token_attaches_identity(self, client, user, auth_headers):
        resp = client.get(ME, headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.get_json()["id"] == user.id

    def test_optional_auth_ignores_bad_token(self, client):
        resp = client.get("/api/v1/movies", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 200


class TestRoleGate:
    def test_user_is_forbidden(self, client, user, auth_headers):
        resp = client.get(PENDING, headers=auth_headers(user))
        assert resp.status_code == 403

    def test_moderator_and_admin_pass(self, client, moderator, admin, auth_headers):
        assert client.get(PENDING, headers=auth_headers(moderator)).status_code == 200
        assert client.get(PENDING, headers=auth_headers(admin)).status_code == 200

    def test_admin_route_rejects_moderator(self, client, moderator, make_movie, auth_headers):
        movie = make_movie()
        resp = client.delete(f"/api/v1/admin/movies/{movie.id}", headers=auth_headers(moderator))
        assert resp.status_code == 403

    def test_role_gate_requires_a_token(self, client):
        assert client.get(PENDING).status_code == 401

    def test_unrecognized_role_claim_is_forbidden(self, app, client, user):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "iss": "filmfolk",
                "sub": user.id,
                "iat": now,
                "nbf": now,
                "exp": now + timedelta(minutes=5),
                "type": "access",
                "account_id": user.id,
                "username": user.username,
                "email": user.email,
                "role": "superuser",
            },
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        resp = client.get(PENDING, headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403
