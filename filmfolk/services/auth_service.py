"""
Authentication and session lifecycle.

register / login / social_login all end by minting an access token plus a
ledger-backed refresh token. refresh() mints a new access token and hands
back the same refresh token (no rotation); logout() revokes it.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from filmfolk.models.account import Account, AccountStatus, AuthProvider
from filmfolk.models.base_model import utcnow
from filmfolk.services.token_ledger import RefreshTokenLedger
from filmfolk.utils.exceptions import (
    AccountStatusError,
    DuplicateError,
    InvalidCredentialsError,
    InvalidTokenError,
    ProviderConflictError,
    TokenInvalidError,
    TokenNotFoundError,
)
from filmfolk.utils.security import BCRYPT_ROUNDS, TokenIssuer, hash_password, verify_password

logger = logging.getLogger(__name__)

USERNAME_MAX = 50
USERNAME_ATTEMPTS = 1000
_USERNAME_STRIP = re.compile(r"[^A-Za-z0-9_]")


@dataclass
class AuthTokens:
    access_token: str
    refresh_token: str
    expires_in: int

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "bearer",
            "expires_in": self.expires_in,
        }


@dataclass
class ProviderUserInfo:
    """What an identity provider tells us about the person signing in."""
    provider: AuthProvider
    provider_id: str
    email: str
    name: str = ""
    given_name: str = ""
    picture: Optional[str] = None


def sanitize_username(value: str) -> str:
    cleaned = _USERNAME_STRIP.sub("", value or "")
    if not cleaned:
        return "user"
    return cleaned[:USERNAME_MAX]


class AuthService:
    def __init__(
        self,
        storage,
        issuer: TokenIssuer,
        access_ttl_minutes: int,
        refresh_ttl_days: int,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.storage = storage
        self.issuer = issuer
        self.access_ttl_minutes = access_ttl_minutes
        self.refresh_ttl_days = refresh_ttl_days
        self.bcrypt_rounds = bcrypt_rounds
        self.ledger = RefreshTokenLedger(storage)

    @property
    def _session(self):
        return self.storage.get_session()

    def _by_email(self, email: str) -> Optional[Account]:
        return self._session.query(Account).filter(Account.email == email).first()

    def _username_taken(self, username: str) -> bool:
        return self._session.query(Account.id).filter(Account.username == username).first() is not None

    def _issue_pair(self, account: Account) -> AuthTokens:
        """Mint both tokens and commit the ledger row along with any pending account changes."""
        access = self.issuer.issue_access_token(account, self.access_ttl_minutes)
        refresh, expires_at = self.issuer.issue_refresh_token(account.id, self.refresh_ttl_days)
        self.ledger.record(account.id, refresh, expires_at)
        self.storage.save()
        return AuthTokens(access, refresh, self.access_ttl_minutes * 60)

    def _create_account(self, account: Account) -> Account:
        self.storage.new(account)
        try:
            self.storage.save()
        except IntegrityError as exc:
            # A concurrent insert won the race between our check and the commit
            logger.info("account insert lost a uniqueness race: %s", account.username)
            raise DuplicateError("email or username already registered") from exc
        return account

    def register(self, username: str, email: str, password: str) -> AuthTokens:
        email = email.strip().lower()
        if self._by_email(email):
            raise DuplicateError("email already registered")
        if self._username_taken(username):
            raise DuplicateError("username already taken")

        account = Account(
            username=username,
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            auth_provider=AuthProvider.EMAIL,
            status=AccountStatus.ACTIVE,
        )
        self._create_account(account)
        logger.info("registered account %s", account.id)
        return self._issue_pair(account)

    def login(self, email: str, password: str) -> AuthTokens:
        account = self._by_email((email or "").strip().lower())
        if account is None:
            logger.info("login failed: unknown email")
            raise InvalidCredentialsError()
        if not account.is_active:
            logger.info("login refused for %s account %s", account.status.value, account.id)
            raise AccountStatusError(account.status)
        if not account.password_hash or not verify_password(password, account.password_hash):
            logger.info("login failed: bad password for account %s", account.id)
            raise InvalidCredentialsError()

        account.last_login_at = utcnow()
        return self._issue_pair(account)

    def refresh(self, refresh_token: str) -> AuthTokens:
        try:
            account_id = self.issuer.validate_refresh_token_format(refresh_token)
        except InvalidTokenError as exc:
            raise InvalidTokenError("invalid refresh token") from exc

        row = self.ledger.find(refresh_token, account_id)
        if row is None:
            raise TokenNotFoundError()
        if not row.is_valid():
            raise TokenInvalidError()

        account = self.storage.get(Account, account_id)
        if account is None:
            raise TokenNotFoundError()
        if not account.is_active:
            raise AccountStatusError(account.status)

        access = self.issuer.issue_access_token(account, self.access_ttl_minutes)
        return AuthTokens(access, refresh_token, self.access_ttl_minutes * 60)

    def logout(self, refresh_token: str) -> int:
        """Revoke the token. Unknown or already-revoked tokens are a successful no-op."""
        changed = self.ledger.revoke(refresh_token)
        if not changed:
            logger.debug("logout matched no live refresh token")
        return changed

    def generate_username(self, info: ProviderUserInfo) -> str:
        base = sanitize_username(info.given_name or info.name or "user")
        if not self._username_taken(base):
            return base
        for counter in range(1, USERNAME_ATTEMPTS + 1):
            candidate = f"{base[:USERNAME_MAX - len(str(counter))]}{counter}"
            if not self._username_taken(candidate):
                return candidate
        suffix = str(time.time_ns() % 10000)
        return f"{base[:USERNAME_MAX - len(suffix)]}{suffix}"

    def social_login(self, info: ProviderUserInfo) -> AuthTokens:
        provider = AuthProvider(info.provider)
        account = (
            self._session.query(Account)
            .filter(Account.auth_provider == provider, Account.provider_id == info.provider_id)
            .first()
        )

        if account is None:
            email = info.email.strip().lower()
            if self._by_email(email):
                raise ProviderConflictError()
            account = Account(
                username=self.generate_username(info),
                email=email,
                password_hash=None,
                auth_provider=provider,
                provider_id=info.provider_id,
                status=AccountStatus.ACTIVE,
                avatar_url=info.picture or None,
            )
            self._create_account(account)
            logger.info("created %s account %s", provider.value, account.id)

        if not account.is_active:
            raise AccountStatusError(account.status)

        account.last_login_at = utcnow()
        return self._issue_pair(account)
