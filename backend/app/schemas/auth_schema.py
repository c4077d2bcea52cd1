"""
schemas/auth_schema.py — Marshmallow schemas for auth and account endpoints.

Validation responsibility:
  - This file: field presence, types, formats, lengths.
  - services/auth_service.py: blank-after-trim checks and uniqueness
    (the service repeats the blank checks so it is safe to call directly).

Wire names are camelCase (`fullName`, `oldPassword`); loaded dicts use
snake_case keys via data_key.

IMPORTANT: All schemas inherit from marshmallow.Schema directly so they can
be instantiated without a Flask app context.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates_schema

from backend.app.store.credential_store import MAX_PASSWORD_BYTES, password_fits


def _password_within_bcrypt_limit(value: str) -> None:
    if not password_fits(value):
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")


class _RequestSchema(Schema):
    class Meta:
        # Multipart forms carry extra parts (files, CSRF tokens) we ignore.
        unknown = EXCLUDE


class RegisterSchema(_RequestSchema):
    """
    POST /auth/register (multipart form)

    The avatar / coverImage files are read from request.files by the route,
    not by this schema.
    """

    full_name = fields.Str(
        required=True,
        data_key="fullName",
        validate=validate.Length(max=255),
    )
    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )
    username = fields.Str(
        required=True,
        validate=[
            validate.Length(max=50),
            validate.Regexp(
                r"^\s*[a-zA-Z0-9_.]*\s*$",
                error="Username may only contain letters, numbers, dots and underscores.",
            ),
        ],
    )
    password = fields.Str(
        required=True,
        load_only=True,
        validate=_password_within_bcrypt_limit,
    )


class LoginSchema(_RequestSchema):
    """
    POST /auth/login

    Either username or email identifies the account. Which one matches is
    decided in auth_service.login_user.
    """

    username = fields.Str(load_default=None)
    email = fields.Str(load_default=None)
    password = fields.Str(required=True, load_only=True)

    @validates_schema
    def validate_identifier(self, data: dict, **kwargs) -> None:
        if not (data.get("username") or "").strip() and not (data.get("email") or "").strip():
            raise ValidationError("Username or email is required.", field_name="username")


class RefreshTokenSchema(_RequestSchema):
    """
    POST /auth/refresh-token

    The token may instead arrive in the refreshToken cookie, so it is
    optional here.
    """

    refresh_token = fields.Str(load_default=None, data_key="refreshToken")


class ChangePasswordSchema(_RequestSchema):
    """POST /auth/change-password"""

    old_password = fields.Str(required=True, load_only=True, data_key="oldPassword")
    new_password = fields.Str(
        required=True,
        load_only=True,
        data_key="newPassword",
        validate=[
            validate.Length(min=1, error="New password must not be empty."),
            _password_within_bcrypt_limit,
        ],
    )


class UpdateAccountSchema(_RequestSchema):
    """PATCH /users/update-account"""

    full_name = fields.Str(
        required=True,
        data_key="fullName",
        validate=validate.Length(min=1, max=255),
    )
    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )
