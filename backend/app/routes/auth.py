"""
routes/auth.py — Session lifecycle route handlers.

Layer rules:
  - Parse the request (JSON or form) and validate it with a schema
  - Call exactly ONE service function
  - Commit the DB session
  - Return the success envelope, setting or clearing cookies as needed

AppError propagates to the global error handler in app/__init__.py;
routes never catch it.

Endpoints (url_prefix=/api/v1/auth):
  POST   /register         → 201  (multipart: avatar required, coverImage optional)
  POST   /login            → 200  + accessToken / refreshToken cookies
  POST   /logout           → 200  cookies cleared          (auth)
  POST   /refresh-token    → 200  + rotated cookies
  POST   /change-password  → 200                          (auth)
  GET    /me               → 200                          (auth)
"""

from __future__ import annotations

from flask import Blueprint, g, request

from backend.app.extensions import db, get_media_uploader, get_token_service
from backend.app.middleware.auth_middleware import require_auth
from backend.app.responses import api_response
from backend.app.routes._helpers import (
    REFRESH_COOKIE,
    clear_session_cookies,
    credential_store,
    request_payload,
    saved_file,
    set_session_cookies,
)
from backend.app.schemas.auth_schema import (
    ChangePasswordSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
)
from backend.app.services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    """POST /auth/register — Create an account. (No auth required.)"""
    data = RegisterSchema().load(request_payload())
    result = auth_service.register_user(
        full_name=data["full_name"],
        email=data["email"],
        username=data["username"],
        password=data["password"],
        avatar_path=saved_file("avatar"),
        cover_image_path=saved_file("coverImage"),
        store=credential_store(),
        uploader=get_media_uploader(),
    )
    db.session.commit()
    return api_response(201, result, "User registered successfully")


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate with username or email. (No auth required.)"""
    data = LoginSchema().load(request_payload())
    result = auth_service.login_user(
        username=data["username"],
        email=data["email"],
        password=data["password"],
        store=credential_store(),
        tokens=get_token_service(),
    )
    db.session.commit()

    response = api_response(200, {
        "user":         result["user"],
        "accessToken":  result["access_token"],
        "refreshToken": result["refresh_token"],
    }, "User logged in successfully")
    return set_session_cookies(response, result["access_token"], result["refresh_token"])


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """POST /auth/logout — Clear the refresh-token slot and both cookies."""
    auth_service.logout_user(user_id=g.user_id, store=credential_store())
    db.session.commit()
    return clear_session_cookies(api_response(200, {}, "User logged out successfully"))


@auth_bp.route("/refresh-token", methods=["POST"])
def refresh_token():
    """POST /auth/refresh-token — Rotate the token pair. Cookie wins over body."""
    data = RefreshTokenSchema().load(request_payload())
    incoming = request.cookies.get(REFRESH_COOKIE) or data["refresh_token"]
    result = auth_service.refresh_access_token(
        incoming_refresh_token=incoming,
        store=credential_store(),
        tokens=get_token_service(),
    )
    db.session.commit()

    response = api_response(200, {
        "accessToken":  result["access_token"],
        "refreshToken": result["refresh_token"],
    }, "Access token refreshed")
    return set_session_cookies(response, result["access_token"], result["refresh_token"])


@auth_bp.route("/change-password", methods=["POST"])
@require_auth
def change_password():
    """POST /auth/change-password — Requires the current password."""
    data = ChangePasswordSchema().load(request_payload())
    auth_service.change_password(
        user_id=g.user_id,
        old_password=data["old_password"],
        new_password=data["new_password"],
        store=credential_store(),
    )
    db.session.commit()
    return api_response(200, {}, "Password changed successfully")


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """GET /auth/me — Current user profile."""
    result = auth_service.get_current_user(user_id=g.user_id, store=credential_store())
    return api_response(200, result, "Current user fetched successfully")
