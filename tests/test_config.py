"""
Tests for configuration selection and validation.
"""
import pytest

from filmfolk.api import create_app
from filmfolk.api.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    validate_config,
)
from filmfolk.utils.exceptions import ConfigError

VALID = {
    "APP_NAME": "filmfolk",
    "APP_PORT": 8080,
    "APP_ENV": "production",
    "DATABASE_URL": "sqlite://",
    "JWT_SECRET_KEY": "x" * 32,
    "JWT_ACCESS_TOKEN_TTL": 15,
    "JWT_REFRESH_TOKEN_TTL": 7,
    "BCRYPT_ROUNDS": 12,
    "RATE_LIMIT_PER_MINUTE": 100,
    "AUTH_RATE_LIMIT_PER_MINUTE": 10,
}


@pytest.mark.parametrize(
    "name, expected",
    [
        ("prod", ProductionConfig),
        ("production", ProductionConfig),
        ("test", TestingConfig),
        ("Testing", TestingConfig),
        ("dev", DevelopmentConfig),
        ("anything-else", DevelopmentConfig),
    ],
)
def test_get_config(name, expected):
    assert get_config(name) is expected


def test_get_config_falls_back_to_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "prod")
    assert get_config(None) is ProductionConfig


def test_valid_config_passes():
    validate_config(VALID)
    validate_config(TestingConfig)


@pytest.mark.parametrize(
    "patch, problem",
    [
        ({"APP_NAME": ""}, "APP_NAME"),
        ({"APP_PORT": 70000}, "APP_PORT"),
        ({"APP_PORT": "eighty"}, "APP_PORT"),
        ({"DATABASE_URL": None}, "DATABASE_URL"),
        ({"JWT_SECRET_KEY": "too-short"}, "JWT_SECRET_KEY"),
        ({"JWT_SECRET_KEY": "x" * 31}, "JWT_SECRET_KEY"),
        ({"JWT_ACCESS_TOKEN_TTL": 0}, "JWT_ACCESS_TOKEN_TTL"),
        ({"AUTH_RATE_LIMIT_PER_MINUTE": -1}, "AUTH_RATE_LIMIT_PER_MINUTE"),
    ],
)
def test_invalid_field_is_named(patch, problem):
    with pytest.raises(ConfigError) as exc:
        validate_config({**VALID, **patch})
    assert problem in exc.value.message


def test_all_problems_reported_together():
    with pytest.raises(ConfigError) as exc:
        validate_config({**VALID, "APP_NAME": "", "JWT_SECRET_KEY": ""})
    assert "APP_NAME" in exc.value.message
    assert "JWT_SECRET_KEY" in exc.value.message


def test_testing_secret_is_long_enough_for_hs256():
    assert len(TestingConfig.JWT_SECRET_KEY) >= 32
    validate_config({**VALID, "JWT_SECRET_KEY": "x" * 32})


def test_create_app_refuses_bad_config():
    with pytest.raises(ConfigError):
        create_app("testing", overrides={"JWT_SECRET_KEY": "short"})
