"""
Domain error taxonomy.

Every error carries the HTTP status it maps to; api/errors.py turns them
into the uniform {"error": <message>} envelope at the handler boundary.
"""
from __future__ import annotations


class FilmfolkError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FilmfolkError):
    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(FilmfolkError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentialsError(AuthenticationError):
    default_message = "invalid email or password"


class InvalidTokenError(AuthenticationError):
    default_message = "invalid token"


class TokenNotFoundError(AuthenticationError):
    default_message = "refresh token not found"


class TokenInvalidError(AuthenticationError):
    default_message = "refresh token expired or revoked"


class AuthorizationError(FilmfolkError):
    status_code = 403
    default_message = "Insufficient permissions"


class ForbiddenError(AuthorizationError):
    pass


class AccountStatusError(AuthorizationError):
    def __init__(self, status=None):
        value = getattr(status, "value", status)
        super().__init__(f"account is {value}" if value else "account is not active")
        self.status = value


class NotFoundError(FilmfolkError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(FilmfolkError):
    status_code = 409
    default_message = "Conflict"


class DuplicateError(ConflictError):
    pass


class ProviderConflictError(ConflictError):
    default_message = "email already registered with different login method"


class DependencyError(FilmfolkError):
    status_code = 502
    default_message = "Upstream dependency failed"


class ConfigError(FilmfolkError):
    """Missing or malformed startup configuration. Fatal at process start."""
    status_code = 500
    default_message = "Invalid configuration"
