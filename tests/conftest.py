"""
Test configuration and fixtures.

Every test gets its own app with a fresh in-memory SQLite database.
"""
import uuid
from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from filmfolk.api import create_app
from filmfolk.models import Account, AccountStatus, AuthProvider, DBStorage, Movie, MovieStatus, Role
from filmfolk.utils.security import hash_password

DEFAULT_PASSWORD = "password123"


@pytest.fixture
def app() -> Generator[Flask, None, None]:
    """Create an app on TestingConfig."""
    app = create_app("testing")
    yield app
    app.extensions["filmfolk"]["storage"].close()


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def storage(app: Flask) -> DBStorage:
    return app.extensions["filmfolk"]["storage"]


@pytest.fixture
def issuer(app: Flask):
    return app.extensions["filmfolk"]["token_issuer"]


@pytest.fixture
def auth_service(app: Flask):
    return app.extensions["filmfolk"]["auth_service"]


@pytest.fixture
def make_account(storage: DBStorage):
    """Factory for persisted email accounts."""
    def _make(
        username: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: Role = Role.USER,
        status: AccountStatus = AccountStatus.ACTIVE,
    ) -> Account:
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        account = Account(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password, rounds=4),
            auth_provider=AuthProvider.EMAIL,
            role=role,
            status=status,
        )
        storage.new(account)
        storage.save()
        return account

    return _make


@pytest.fixture
def auth_headers(issuer):
    """Bearer header for an account."""
    def _headers(account: Account) -> dict:
        token = issuer.issue_access_token(account, 15)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def user(make_account) -> Account:
    return make_account(username="regular")


@pytest.fixture
def moderator(make_account) -> Account:
    return make_account(username="moddy", role=Role.MODERATOR)


@pytest.fixture
def admin(make_account) -> Account:
    return make_account(username="root_admin", role=Role.ADMIN)


@pytest.fixture
def make_movie(storage: DBStorage):
    """Factory for persisted movies (approved unless told otherwise)."""
    def _make(
        title: str = "Heat",
        release_year: int = 1995,
        genres=None,
        status: MovieStatus = MovieStatus.APPROVED,
        submitted_by: Account | None = None,
        **extra,
    ) -> Movie:
        movie = Movie(
            title=title,
            release_year=release_year,
            genres=genres if genres is not None else ["Crime", "Drama"],
            status=status,
            submitted_by_id=submitted_by.id if submitted_by else None,
            **extra,
        )
        storage.new(movie)
        storage.save()
        return movie

    return _make
