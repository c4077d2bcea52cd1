"""
errors.py — AppError hierarchy and error code registry.

Every failure returned by the API is one of six kinds, each a subclass of
AppError with a fixed HTTP status:

  ValidationError      400  bad or missing input
  UploadError          400  media transfer failed
  AuthenticationError  401  bad credential or token
  NotFoundError        404  no matching record
  ConflictError        409  duplicate identity
  InternalError        500  unexpected store / token failure

Service and route code raises these; the global handlers in app/__init__.py
turn them into the failure envelope. Error codes are a stable contract;
messages are human-readable prose and may be reworded at any time.
"""

from __future__ import annotations


class AppError(Exception):

    http_status: int = 500

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int | None = None,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.field       = field  # which request field caused the error
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self) -> dict:
        detail = {"code": self.code}
        if self.field is not None:
            detail["field"] = self.field
        return {
            "statusCode": self.http_status,
            "data":       None,
            "message":    self.message,
            "success":    False,
            "errors":     [detail],
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class ValidationError(AppError):
    http_status = 400


class UploadError(AppError):
    http_status = 400


class AuthenticationError(AppError):
    http_status = 401


class NotFoundError(AppError):
    http_status = 404


class ConflictError(AppError):
    http_status = 409


class InternalError(AppError):
    http_status = 500


# ── Error Code Registry ────────────────────────────────────────────────────
#
# These are the string values sent in errors[].code.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input Errors (400) ─────────────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    AVATAR_REQUIRED            = "AVATAR_REQUIRED"
    FILE_REQUIRED              = "FILE_REQUIRED"
    UPLOAD_FAILED              = "UPLOAD_FAILED"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_USER             = "DUPLICATE_USER"
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    CHANNEL_NOT_FOUND          = "CHANNEL_NOT_FOUND"
    ROUTE_NOT_FOUND            = "ROUTE_NOT_FOUND"

    # ── Auth Errors (401) ──────────────────────────────────────────────────
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"
    INVALID_OLD_PASSWORD       = "INVALID_OLD_PASSWORD"
    TOKEN_MISSING              = "TOKEN_MISSING"
    TOKEN_INVALID              = "TOKEN_INVALID"
    REFRESH_TOKEN_MISSING      = "REFRESH_TOKEN_MISSING"
    REFRESH_TOKEN_INVALID      = "REFRESH_TOKEN_INVALID"
    REFRESH_TOKEN_REUSED       = "REFRESH_TOKEN_REUSED"

    # ── System Errors (500) ────────────────────────────────────────────────
    TOKEN_GENERATION_FAILED    = "TOKEN_GENERATION_FAILED"
    REGISTRATION_FAILED        = "REGISTRATION_FAILED"
    INTERNAL_ERROR             = "INTERNAL_ERROR"
