"""
services/auth_service.py — Session lifecycle: register, login, logout,
refresh, change password.

Layer rules:
  - No imports from routes or schemas' request side; no flask.request / g.
  - Collaborators are passed in: `store` (CredentialStore), `tokens`
    (TokenService), `uploader` (MediaUploader).
  - Every failure is raised as one of the AppError kinds in app/errors.py.
  - The store flushes; the route commits.

Token lifecycle:
  - Login issues a pair and overwrites the user's single refresh slot.
  - Refresh requires a valid signature AND exact equality with the slot.
    The slot is then swapped with a conditional update keyed on the
    presented token, so a replayed or concurrently-used token loses.
  - Logout clears the slot, invalidating every outstanding refresh token.
"""

from __future__ import annotations

import logging

import jwt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.app.errors import (
    AuthenticationError,
    ConflictError,
    ErrorCode,
    InternalError,
    NotFoundError,
    UploadError,
    ValidationError,
)
from backend.app.schemas.user_schema import serialize_user
from backend.app.services.token_service import InvalidTokenError, TokenPair
from backend.app.store.credential_store import MAX_PASSWORD_BYTES, password_fits

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _require_text(**values: str | None) -> None:
    """Raises ValidationError naming the first field that is missing or blank."""
    for name, value in values.items():
        if value is None or not str(value).strip():
            raise ValidationError(
                ErrorCode.MISSING_FIELD,
                "All fields are required.",
                field=name,
            )


def _require_password_fits(value: str, field: str) -> None:
    if not password_fits(value):
        raise ValidationError(
            ErrorCode.INVALID_FIELD,
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes.",
            field=field,
        )


def _issue_session(user, store, tokens) -> TokenPair:
    """Signs a new pair and stores the refresh token in the user's slot."""
    try:
        pair = tokens.issue_token_pair(user)
        store.update_by_id(user.id, {"refresh_token": pair.refresh_token}, validate=False)
    except (jwt.PyJWTError, SQLAlchemyError) as exc:
        raise InternalError(
            ErrorCode.TOKEN_GENERATION_FAILED,
            "Something went wrong while generating tokens.",
        ) from exc
    return pair


def _invalid_refresh(reason: str) -> AuthenticationError:
    return AuthenticationError(ErrorCode.REFRESH_TOKEN_INVALID, reason)


# ── Public service functions ───────────────────────────────────────────────

def register_user(
        full_name: str | None,
        email: str | None,
        username: str | None,
        password: str | None,
        avatar_path: str | None,
        cover_image_path: str | None,
        store,
        uploader,
) -> dict:
    """
    Creates an account. The avatar upload is mandatory; the cover image is not.

    Raises:
      ValidationError — a text field is blank, the password is over 72 bytes,
                        or no avatar file was sent
      ConflictError   — username or email already taken
      UploadError     — the media host returned no usable avatar URL
      InternalError   — the created record could not be read back

    Returns: the sanitized user dict (no password, no refresh token).
    """
    _require_text(fullName=full_name, email=email, username=username, password=password)
    _require_password_fits(password, "password")

    if store.find_one(username=username, email=email) is not None:
        raise ConflictError(
            ErrorCode.DUPLICATE_USER,
            "User with email or username already exists.",
        )

    if not avatar_path:
        raise ValidationError(
            ErrorCode.AVATAR_REQUIRED,
            "Avatar file is required.",
            field="avatar",
        )

    avatar = uploader.upload(avatar_path)
    cover_image = uploader.upload(cover_image_path) if cover_image_path else None

    if avatar is None or not avatar.url:
        raise UploadError(
            ErrorCode.UPLOAD_FAILED,
            "Avatar upload failed.",
            field="avatar",
        )

    try:
        user = store.create({
            "full_name":   full_name,
            "email":       email,
            "username":    username,
            "password":    password,
            "avatar":      avatar.url,
            "cover_image": cover_image.url if cover_image is not None else "",
        })
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same identity.
        raise ConflictError(
            ErrorCode.DUPLICATE_USER,
            "User with email or username already exists.",
        ) from exc

    created = store.find_by_id(user.id)
    if created is None:
        raise InternalError(
            ErrorCode.REGISTRATION_FAILED,
            "Something went wrong while registering the user.",
        )

    logger.info("Registered user id=%s", created.id)
    return serialize_user(created)


def login_user(
        password: str | None,
        store,
        tokens,
        username: str | None = None,
        email: str | None = None,
) -> dict:
    """
    Validates credentials and starts a session.

    Raises:
      ValidationError     — neither username nor email given
      NotFoundError       — no matching user
      AuthenticationError — password check failed (slot left untouched)

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    if not (username or "").strip() and not (email or "").strip():
        raise ValidationError(
            ErrorCode.MISSING_FIELD,
            "Username or email is required.",
            field="username",
        )

    user = store.find_one(username=username, email=email)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "User does not exist.")

    if not store.is_password_correct(user, password or ""):
        raise AuthenticationError(ErrorCode.INVALID_CREDENTIALS, "Invalid user credentials.")

    pair = _issue_session(user, store, tokens)
    logged_in = store.find_by_id(user.id)

    logger.info("User id=%s logged in", user.id)
    return {
        "user":          serialize_user(logged_in),
        "access_token":  pair.access_token,
        "refresh_token": pair.refresh_token,
    }


def logout_user(user_id: int, store) -> None:
    """
    Clears the refresh-token slot. Idempotent; a vanished user is a no-op.
    """
    store.update_by_id(user_id, {"refresh_token": None}, validate=False)
    logger.info("User id=%s logged out", user_id)


def refresh_access_token(
        incoming_refresh_token: str | None,
        store,
        tokens,
) -> dict:
    """
    Exchanges a refresh token for a brand-new pair (rotation).

    Every failure is an AuthenticationError; the underlying cause is logged
    and chained but never put in the message.

    Returns: {"access_token": "...", "refresh_token": "..."}
    """
    if not incoming_refresh_token:
        raise AuthenticationError(ErrorCode.REFRESH_TOKEN_MISSING, "Unauthorized request.")

    try:
        claims = tokens.verify_refresh_token(incoming_refresh_token)
        user_id = int(claims["sub"])
    except (InvalidTokenError, KeyError, TypeError, ValueError) as exc:
        logger.debug("Refresh token rejected: %s", exc)
        raise _invalid_refresh("Invalid refresh token.") from exc

    user = store.find_by_id(user_id)
    if user is None:
        raise _invalid_refresh("Invalid refresh token.")

    if user.refresh_token != incoming_refresh_token:
        logger.warning("Stale refresh token presented for user id=%s", user_id)
        raise AuthenticationError(
            ErrorCode.REFRESH_TOKEN_REUSED,
            "Refresh token is expired or used.",
        )

    try:
        pair = tokens.issue_token_pair(user)
    except jwt.PyJWTError as exc:
        raise InternalError(
            ErrorCode.TOKEN_GENERATION_FAILED,
            "Something went wrong while generating tokens.",
        ) from exc

    if not store.swap_refresh_token(user.id, incoming_refresh_token, pair.refresh_token):
        logger.warning("Concurrent refresh lost the slot swap for user id=%s", user_id)
        raise AuthenticationError(
            ErrorCode.REFRESH_TOKEN_REUSED,
            "Refresh token is expired or used.",
        )

    return {
        "access_token":  pair.access_token,
        "refresh_token": pair.refresh_token,
    }


def change_password(
        user_id: int | None,
        old_password: str | None,
        new_password: str | None,
        store,
) -> None:
    """
    Raises:
      ValidationError     — new password blank or over 72 bytes
      NotFoundError       — user_id missing or unknown
      AuthenticationError — old password does not match
    """
    _require_text(newPassword=new_password)
    _require_password_fits(new_password, "newPassword")

    user = store.find_by_id(user_id) if user_id is not None else None
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "User not found.")

    if not store.is_password_correct(user, old_password or ""):
        raise AuthenticationError(ErrorCode.INVALID_OLD_PASSWORD, "Invalid old password.")

    store.update_by_id(user.id, {"password": new_password}, validate=False)


def get_current_user(user_id: int, store) -> dict:
    """
    Raises NotFoundError when the id from the access token no longer exists.
    """
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.")
    return serialize_user(user)
