"""
extensions.py — Flask extension singletons and per-app collaborators.

SQLAlchemy is created here as a module-level object so it can be imported
anywhere without circular dependencies:

    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

The Token Service and the Media Upload collaborator are built once per app
by the factory and stored in app.extensions. Routes fetch them through the
accessors below, so tests can swap either one on a test app instance:

    flask_app.extensions["media_uploader"] = StubUploader()
"""

from __future__ import annotations

from flask import current_app
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

TOKEN_SERVICE_KEY  = "token_service"
MEDIA_UPLOADER_KEY = "media_uploader"


def get_token_service():
    """Returns the TokenService bound to the current app."""
    return current_app.extensions[TOKEN_SERVICE_KEY]


def get_media_uploader():
    """Returns the MediaUploader bound to the current app."""
    return current_app.extensions[MEDIA_UPLOADER_KEY]
