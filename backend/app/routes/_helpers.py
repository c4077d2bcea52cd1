"""
routes/_helpers.py — Request-side plumbing shared by the blueprints.
"""

from __future__ import annotations

from flask import Response, current_app, g, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import ACCESS_COOKIE
from backend.app.services.media_service import remove_temp_file
from backend.app.store.credential_store import CredentialStore
from backend.app.uploads import save_upload

REFRESH_COOKIE = "refreshToken"


def credential_store() -> CredentialStore:
    return CredentialStore(
        db.session,
        bcrypt_rounds=current_app.config.get("BCRYPT_LOG_ROUNDS", 12),
    )


def request_payload() -> dict:
    """JSON body if there is one, else the submitted form fields."""
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        return body
    return request.form.to_dict()


def saved_file(field_name: str) -> str | None:
    """
    Saves the named multipart file to the temp folder; None if absent.

    Files are written before the service runs its checks. The path is
    recorded on `g` so discard_failed_uploads() can remove it when the
    request ends in an error response.
    """
    path = save_upload(
        request.files.get(field_name),
        current_app.config["UPLOAD_FOLDER"],
    )
    if path is not None:
        g.setdefault("saved_uploads", []).append(path)
    return path


def discard_failed_uploads(response: Response) -> Response:
    """after_request hook: drops this request's temp files on a 4xx/5xx."""
    saved = g.pop("saved_uploads", [])
    if response.status_code >= 400:
        for path in saved:
            remove_temp_file(path)
    return response


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure":   bool(current_app.config.get("COOKIE_SECURE", False)),
    }


def set_session_cookies(response: Response, access_token: str, refresh_token: str) -> Response:
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, access_token, **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token, **options)
    return response


def clear_session_cookies(response: Response) -> Response:
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response
