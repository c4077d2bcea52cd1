"""
services/token_service.py — Signing and verification of session tokens.

Two JWTs (HS256 by default), each with its own secret and lifetime:

  access token   short-lived, carries identity claims, never persisted
  refresh token  long-lived, carries only `sub`, persisted verbatim in the
                 user's single refresh-token slot by the session lifecycle

TokenService is a pure function of the user identity plus the TokenSettings
it was constructed with. It has no Flask dependency; the app factory builds
one instance from app.config and stores it in app.extensions.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping

import jwt


class InvalidTokenError(Exception):
    """Signature invalid, token malformed, or token expired."""


@dataclass(frozen=True)
class TokenSettings:
    access_secret: str
    access_expiry: timedelta
    refresh_secret: str
    refresh_expiry: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_config(cls, config: Mapping) -> "TokenSettings":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            access_expiry=config["ACCESS_TOKEN_EXPIRY"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            refresh_expiry=config["REFRESH_TOKEN_EXPIRY"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:

    def __init__(self, settings: TokenSettings) -> None:
        self.settings = settings

    def issue_token_pair(self, user) -> TokenPair:
        """Signs a fresh access + refresh token pair for `user`."""
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user),
        )

    def create_access_token(self, user) -> str:
        claims = {
            "email":    user.email,
            "username": user.username,
            "fullName": user.full_name,
        }
        return self._encode(
            str(user.id),
            self.settings.access_secret,
            self.settings.access_expiry,
            claims,
        )

    def create_refresh_token(self, user) -> str:
        return self._encode(
            str(user.id),
            self.settings.refresh_secret,
            self.settings.refresh_expiry,
        )

    def verify_access_token(self, token: str) -> dict:
        return self._decode(token, self.settings.access_secret)

    def verify_refresh_token(self, token: str) -> dict:
        return self._decode(token, self.settings.refresh_secret)

    def _encode(
            self,
            subject: str,
            secret: str,
            lifetime: timedelta,
            extra_claims: dict | None = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **(extra_claims or {}),
            "sub": subject,
            "iat": now,
            "exp": now + lifetime,
            # Makes every issued token unique even within the same second.
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, secret, algorithm=self.settings.algorithm)

    def _decode(self, token: str, secret: str) -> dict:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.InvalidTokenError as exc:
            # ExpiredSignatureError, DecodeError, InvalidSignatureError, ...
            raise InvalidTokenError(str(exc)) from exc
        return claims
