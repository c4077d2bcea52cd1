"""
Unit tests for TokenService: signing, secret separation and expiry.

No Flask app: TokenService is built from an explicit TokenSettings.
"""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from backend.app.services.token_service import (
    InvalidTokenError,
    TokenService,
    TokenSettings,
)

SETTINGS = TokenSettings(
    access_secret="access-secret",
    access_expiry=timedelta(minutes=15),
    refresh_secret="refresh-secret",
    refresh_expiry=timedelta(days=10),
)

USER = SimpleNamespace(id=42, email="alice@x.com", username="alice", full_name="Alice")


@pytest.fixture
def tokens():
    return TokenService(SETTINGS)


def test_issue_token_pair_signs_with_separate_secrets(tokens):
    pair = tokens.issue_token_pair(USER)

    access = jwt.decode(pair.access_token, "access-secret", algorithms=["HS256"])
    refresh = jwt.decode(pair.refresh_token, "refresh-secret", algorithms=["HS256"])

    assert access["sub"] == "42"
    assert access["username"] == "alice"
    assert access["email"] == "alice@x.com"
    assert access["fullName"] == "Alice"
    assert refresh["sub"] == "42"
    assert "email" not in refresh
    assert refresh["exp"] - refresh["iat"] == int(timedelta(days=10).total_seconds())
    assert access["exp"] - access["iat"] == 15 * 60


def test_consecutive_pairs_differ(tokens):
    first = tokens.issue_token_pair(USER)
    second = tokens.issue_token_pair(USER)

    assert first.access_token != second.access_token
    assert first.refresh_token != second.refresh_token


def test_verify_refresh_token_returns_claims(tokens):
    pair = tokens.issue_token_pair(USER)
    assert tokens.verify_refresh_token(pair.refresh_token)["sub"] == "42"


def test_access_token_is_not_a_valid_refresh_token(tokens):
    pair = tokens.issue_token_pair(USER)

    with pytest.raises(InvalidTokenError):
        tokens.verify_refresh_token(pair.access_token)


def test_expired_refresh_token_is_rejected():
    expired = TokenService(TokenSettings(
        access_secret="a",
        access_expiry=timedelta(seconds=-1),
        refresh_secret="r",
        refresh_expiry=timedelta(seconds=-1),
    ))
    pair = expired.issue_token_pair(USER)

    with pytest.raises(InvalidTokenError):
        expired.verify_refresh_token(pair.refresh_token)
    with pytest.raises(InvalidTokenError):
        expired.verify_access_token(pair.access_token)


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_rejected(tokens, garbage):
    with pytest.raises(InvalidTokenError):
        tokens.verify_refresh_token(garbage)


def test_settings_from_config_mapping():
    settings = TokenSettings.from_config({
        "ACCESS_TOKEN_SECRET": "a",
        "ACCESS_TOKEN_EXPIRY": timedelta(minutes=1),
        "REFRESH_TOKEN_SECRET": "r",
        "REFRESH_TOKEN_EXPIRY": timedelta(days=1),
    })

    assert settings.algorithm == "HS256"
    assert settings.refresh_expiry == timedelta(days=1)
