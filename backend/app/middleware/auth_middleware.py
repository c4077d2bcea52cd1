"""
middleware/auth_middleware.py — Access-token authentication decorator.

The @require_auth decorator:
  1. Reads the access token from the `accessToken` cookie, or failing that
     from an "Authorization: Bearer <token>" header
  2. Verifies signature and expiry with the access-token secret
  3. Attaches the user id (int) to flask.g for the duration of the request

It establishes identity only. Services receive user_id as a plain int and
never look at cookies, headers or JWTs.

Error codes:
  TOKEN_MISSING (401) — no cookie and no Authorization header
  TOKEN_INVALID (401) — malformed header, bad signature, expired, bad sub
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import g, request

from backend.app.errors import AuthenticationError, ErrorCode
from backend.app.extensions import get_token_service
from backend.app.services.token_service import InvalidTokenError

ACCESS_COOKIE = "accessToken"


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces access-token authentication.

    Usage:
        @users_bp.route("/history")
        @require_auth
        def history():
            user_id = g.user_id  # always an int when this runs
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _extract_token() -> str:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        raise AuthenticationError(ErrorCode.TOKEN_MISSING, "Unauthorized request.")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
        )
    return parts[1]


def _authenticate_request() -> None:
    """
    Performs the full authentication sequence and sets flask.g.user_id.

    Separated from the decorator wrapper so tests can call it directly.
    """
    raw_token = _extract_token()

    try:
        claims = get_token_service().verify_access_token(raw_token)
    except InvalidTokenError as exc:
        raise AuthenticationError(ErrorCode.TOKEN_INVALID, "Invalid access token.") from exc

    try:
        g.user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError(ErrorCode.TOKEN_INVALID, "Invalid access token.") from exc
