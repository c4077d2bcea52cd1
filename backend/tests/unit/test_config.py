"""
Unit tests for backend/config.py: duration parsing and the production guard.
"""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from backend.config import config_by_name, parse_duration, validate_production_config


@pytest.mark.parametrize("raw,expected", [
    ("900", timedelta(seconds=900)),
    ("30s", timedelta(seconds=30)),
    ("15m", timedelta(minutes=15)),
    ("12h", timedelta(hours=12)),
    ("10d", timedelta(days=10)),
    (" 1D ", timedelta(days=1)),
])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "10w", "-5m", "1.5h"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def _app(**overrides):
    config = {
        "SQLALCHEMY_DATABASE_URI": "postgresql://db/vidtube",
        "SECRET_KEY": "s3cret",
        "ACCESS_TOKEN_SECRET": "access-strong",
        "REFRESH_TOKEN_SECRET": "refresh-strong",
    }
    config.update(overrides)
    return SimpleNamespace(config=config)


def test_production_guard_accepts_complete_config():
    validate_production_config(_app())


def test_production_guard_requires_database_url():
    with pytest.raises(ValueError, match="DATABASE_URL"):
        validate_production_config(_app(SQLALCHEMY_DATABASE_URI=""))


@pytest.mark.parametrize("key", ["SECRET_KEY", "ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET"])
def test_production_guard_rejects_placeholder_secrets(key):
    with pytest.raises(ValueError, match=key):
        validate_production_config(_app(**{key: "change-me-in-production"}))


def test_production_guard_requires_distinct_token_secrets():
    with pytest.raises(ValueError, match="must differ"):
        validate_production_config(_app(REFRESH_TOKEN_SECRET="access-strong"))


def test_testing_config_uses_short_lived_tokens():
    testing = config_by_name["testing"]
    assert testing.ACCESS_TOKEN_EXPIRY < testing.REFRESH_TOKEN_EXPIRY
    assert testing.ACCESS_TOKEN_SECRET != testing.REFRESH_TOKEN_SECRET
    assert config_by_name["production"].COOKIE_SECURE is True
