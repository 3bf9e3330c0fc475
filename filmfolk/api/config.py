"""
Environment-aware configuration.
Values come from the process environment; a .env file is read if present.
validate_config() is run by create_app() and refuses to start on bad input.
"""
from __future__ import annotations

import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

from filmfolk.utils.exceptions import ConfigError

load_dotenv()  # Read .env if present

# HS256 wants a key at least as long as its 32-byte digest
MIN_SECRET_LENGTH = 32


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        # Left as-is so validate_config reports it
        return raw


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _database_url() -> str | None:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host, user, name = os.getenv("DB_HOST"), os.getenv("DB_USER"), os.getenv("DB_NAME")
    if not (host and user and name):
        return None
    password = quote_plus(os.getenv("DB_PASSWORD", ""))
    port = os.getenv("DB_PORT", "5432")
    sslmode = os.getenv("DB_SSLMODE", "disable")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


class BaseConfig:
    APP_NAME = os.getenv("APP_NAME", "filmfolk")
    APP_PORT = _env_int("APP_PORT", 8080)
    APP_ENV = os.getenv("APP_ENV", "dev")
    VERSION = "1.0.0"
    DEBUG = False
    TESTING = False
    LOG_LEVEL = os.getenv("LOG_LEVEL")

    SECRET_KEY = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY", ""))
    # CORS: comma-separated list; dev falls back to '*'
    ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS", "http://localhost:3000")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")

    DATABASE_URL = _database_url()
    SQL_ECHO = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
    JWT_ACCESS_TOKEN_TTL = _env_int("JWT_ACCESS_TOKEN_TTL", 15)  # minutes
    JWT_REFRESH_TOKEN_TTL = _env_int("JWT_REFRESH_TOKEN_TTL", 7)  # days
    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REDIRECT_URL = os.getenv("GOOGLE_REDIRECT_URL")
    OAUTH_TIMEOUT_SECONDS = 10

    # Collected so deployments can set them; no client in this service reads them yet
    TMDB_API_KEY = os.getenv("TMDB_API_KEY")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

    RATE_LIMIT_PER_MINUTE = _env_int("RATE_LIMIT_PER_MINUTE", 100)
    AUTH_RATE_LIMIT_PER_MINUTE = _env_int("AUTH_RATE_LIMIT_PER_MINUTE", 10)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    APP_ENV = "development"
    ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS", "*")
    DATABASE_URL = BaseConfig.DATABASE_URL or "sqlite:///filmfolk-dev.db"
    JWT_SECRET_KEY = BaseConfig.JWT_SECRET_KEY or "dev-secret-change-me-please-0123456789"


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-0123456789abcdefghijklmnop"
    JWT_ACCESS_TOKEN_TTL = 15
    JWT_REFRESH_TOKEN_TTL = 7
    BCRYPT_ROUNDS = 4
    FRONTEND_URL = "http://frontend.test"
    GOOGLE_CLIENT_ID = "test-client-id"
    GOOGLE_CLIENT_SECRET = "test-client-secret"
    GOOGLE_REDIRECT_URL = "http://localhost/auth/google/callback"
    RATE_LIMIT_PER_MINUTE = 10000
    AUTH_RATE_LIMIT_PER_MINUTE = 10000


class ProductionConfig(BaseConfig):
    DEBUG = False
    APP_ENV = "production"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ("prod", "production"):
        return ProductionConfig
    if env in ("test", "testing"):
        return TestingConfig
    return DevelopmentConfig


def validate_config(config) -> None:
    """
    Check required fields on a config object or mapping.
    All problems are reported together in one ConfigError.
    """
    get = config.get if isinstance(config, dict) else (lambda k, d=None: getattr(config, k, d))
    problems = []

    if not get("APP_NAME"):
        problems.append("APP_NAME")
    port = get("APP_PORT")
    if not isinstance(port, int) or not 1 <= port <= 65535:
        problems.append("APP_PORT")
    if not get("APP_ENV"):
        problems.append("APP_ENV")
    if not get("DATABASE_URL"):
        problems.append("DATABASE_URL (or DB_HOST/DB_USER/DB_NAME)")

    secret = get("JWT_SECRET_KEY") or ""
    if len(secret) < MIN_SECRET_LENGTH:
        problems.append(f"JWT_SECRET_KEY (min {MIN_SECRET_LENGTH} characters)")
    for key in ("JWT_ACCESS_TOKEN_TTL", "JWT_REFRESH_TOKEN_TTL"):
        value = get(key)
        if not isinstance(value, int) or value <= 0:
            problems.append(key)
    for key in ("BCRYPT_ROUNDS", "RATE_LIMIT_PER_MINUTE", "AUTH_RATE_LIMIT_PER_MINUTE"):
        value = get(key)
        if not isinstance(value, int) or value <= 0:
            problems.append(key)

    if problems:
        raise ConfigError("missing or invalid configuration fields: " + ", ".join(problems))
