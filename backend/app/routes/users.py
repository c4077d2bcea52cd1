"""
routes/users.py — Account and channel route handlers.

Endpoints (url_prefix=/api/v1/users, all require auth):
  PATCH  /update-account     → 200  fullName + email
  PATCH  /avatar             → 200  multipart avatar
  PATCH  /cover-image        → 200  multipart coverImage
  GET    /c/<username>       → 200  channel profile with subscriber counts
  GET    /history            → 200  watch history
"""

from __future__ import annotations

from flask import Blueprint, g

from backend.app.extensions import db, get_media_uploader
from backend.app.middleware.auth_middleware import require_auth
from backend.app.responses import api_response
from backend.app.routes._helpers import credential_store, request_payload, saved_file
from backend.app.schemas.auth_schema import UpdateAccountSchema
from backend.app.services import profile_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/update-account", methods=["PATCH"])
@require_auth
def update_account():
    data = UpdateAccountSchema().load(request_payload())
    result = profile_service.update_account_details(
        user_id=g.user_id,
        full_name=data["full_name"],
        email=data["email"],
        store=credential_store(),
    )
    db.session.commit()
    return api_response(200, result, "Account details updated successfully")


@users_bp.route("/avatar", methods=["PATCH"])
@require_auth
def update_avatar():
    result = profile_service.update_avatar(
        user_id=g.user_id,
        avatar_path=saved_file("avatar"),
        store=credential_store(),
        uploader=get_media_uploader(),
    )
    db.session.commit()
    return api_response(200, result, "Avatar image updated successfully")


@users_bp.route("/cover-image", methods=["PATCH"])
@require_auth
def update_cover_image():
    result = profile_service.update_cover_image(
        user_id=g.user_id,
        cover_image_path=saved_file("coverImage"),
        store=credential_store(),
        uploader=get_media_uploader(),
    )
    db.session.commit()
    return api_response(200, result, "Cover image updated successfully")


@users_bp.route("/c/<string:username>", methods=["GET"])
@require_auth
def channel_profile(username: str):
    result = profile_service.get_channel_profile(
        username=username,
        viewer_id=g.user_id,
        store=credential_store(),
    )
    return api_response(200, result, "User channel fetched successfully")


@users_bp.route("/history", methods=["GET"])
@require_auth
def watch_history():
    result = profile_service.get_watch_history(user_id=g.user_id, store=credential_store())
    return api_response(200, result, "Watch history fetched successfully")
