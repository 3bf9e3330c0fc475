"""
security helpers:
- bcrypt password hashing (fixed cost factor, 12 by default)
- JWT creation/verification via PyJWT (HS256, one shared secret)
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
import jwt

from filmfolk.models.account import Role
from filmfolk.utils.exceptions import ConfigError, InvalidTokenError

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of input
MAX_PASSWORD_BYTES = 72
JWT_ALGORITHM = "HS256"
JWT_ISSUER = "filmfolk"

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plaintext password using bcrypt
    """
    if not password:
        raise ValueError("password cannot be empty")
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password against a bcrypt hash
    """
    if not password or not password_hash:
        return False
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionClaims:
    """Identity reconstructed from a validated access token."""
    account_id: str
    username: str
    email: str
    role: Optional[Role]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.account_id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value if self.role else None,
        }


class TokenIssuer:
    """
    Mints and verifies access and refresh tokens with a single shared secret.

    Validation only checks signature and structure. Whether a refresh token
    is still live is a question for the ledger.
    """

    def __init__(self, secret: str | None, issuer: str = JWT_ISSUER, algorithm: str = JWT_ALGORITHM):
        self.secret = secret
        self.issuer = issuer
        self.algorithm = algorithm

    def _require_secret(self) -> str:
        if not self.secret:
            raise ConfigError("JWT secret not initialized")
        return self.secret

    def _registered_claims(self, subject: str, ttl: timedelta, token_type: str) -> Dict[str, Any]:
        now = _now().replace(microsecond=0)
        return {
            "iss": self.issuer,
            "sub": str(subject),
            "iat": now,
            "nbf": now,
            "exp": now + ttl,
            "type": token_type,
            "jti": generate_jti(),
        }

    def issue_access_token(self, account, ttl_minutes: int) -> str:
        secret = self._require_secret()
        payload = self._registered_claims(account.id, timedelta(minutes=ttl_minutes), ACCESS)
        role = getattr(account.role, "value", account.role)
        payload.update(
            {
                "account_id": str(account.id),
                "username": account.username,
                "email": account.email,
                "role": role,
            }
        )
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_refresh_token(self, account_id: str, ttl_days: int) -> Tuple[str, datetime]:
        secret = self._require_secret()
        payload = self._registered_claims(account_id, timedelta(days=ttl_days), REFRESH)
        return jwt.encode(payload, secret, algorithm=self.algorithm), payload["exp"]

    def _decode(self, token: str, expected_type: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Every failure (malformed, wrong algorithm,
        expired, bad signature, wrong issuer or type) is one InvalidTokenError.
        """
        secret = self._require_secret()
        if not token or not isinstance(token, str):
            raise InvalidTokenError()
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "nbf", "sub", "iss"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        if decoded.get("type") != expected_type:
            raise InvalidTokenError()
        return decoded

    def validate_access_token(self, token: str) -> SessionClaims:
        decoded = self._decode(token, ACCESS)
        account_id = decoded.get("account_id")
        if not account_id or account_id != decoded.get("sub"):
            raise InvalidTokenError()
        return SessionClaims(
            account_id=account_id,
            username=decoded.get("username", ""),
            email=decoded.get("email", ""),
            role=Role.parse(decoded.get("role")),
        )

    def validate_refresh_token_format(self, token: str) -> str:
        """Return the subject account id of a well-formed refresh token."""
        decoded = self._decode(token, REFRESH)
        try:
            return str(uuid.UUID(decoded["sub"]))
        except (ValueError, TypeError, AttributeError) as exc:
            raise InvalidTokenError() from exc
