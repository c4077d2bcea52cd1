"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and `flask db` tooling can import without serving.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise SQLAlchemy and the per-app collaborators (TokenService,
     MediaUploader) stored in app.extensions
  4. Register route blueprints under /api/v1
  5. Register global error handlers (AppError / schema errors / HTTP errors
     → failure envelope, anything else → 500)
  6. Add CORS headers with credentials for the browser client

Model modules are imported inside create_app() so SQLAlchemy's metadata is
populated before Alembic or db.create_all() inspects it.
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify, request
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException

from backend.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to "development".
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    from backend.app.extensions import MEDIA_UPLOADER_KEY, TOKEN_SERVICE_KEY, db
    from backend.app.services.media_service import CloudinaryUploader
    from backend.app.services.token_service import TokenService, TokenSettings

    db.init_app(app)
    app.extensions[TOKEN_SERVICE_KEY] = TokenService(TokenSettings.from_config(app.config))
    app.extensions[MEDIA_UPLOADER_KEY] = CloudinaryUploader.from_config(app.config)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from backend.app.models import (  # noqa: F401
            subscription,
            user,
            video,
            watch_history,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Applies LOG_LEVEL to the Flask logger and the backend.* loggers."""
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    backend_logger = logging.getLogger("backend")
    backend_logger.setLevel(level)
    if not backend_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        ))
        backend_logger.addHandler(handler)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    Individual route files only specify the path relative to their resource.
    """
    from backend.app.routes._helpers import discard_failed_uploads
    from backend.app.routes.auth import auth_bp
    from backend.app.routes.users import users_bp

    app.register_blueprint(auth_bp,  url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    # Temp files of failed requests go now; the rest wait for external cleanup.
    app.after_request(discard_failed_uploads)


def _failure_envelope(status: int, message: str, errors: list[dict]) -> dict:
    return {
        "statusCode": status,
        "data":       None,
        "message":    message,
        "success":    False,
        "errors":     errors,
    }


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError              → failure envelope with the error's HTTP status
      marshmallow errors    → 400 envelope, one entry per offending field
      HTTPException         → envelope with the werkzeug status (404, 405, 413)
      Exception             → generic INTERNAL_ERROR (500); traceback logged

    Stack traces never leave the server.
    """
    from backend.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the failure envelope.
        """
        if error.http_status >= 500:
            app.logger.error("%r", error, exc_info=error.__cause__ or error)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(error: SchemaValidationError):
        """
        Flattens marshmallow's messages dict into the errors list.

        The first field's first message becomes the envelope message.
        """
        messages = error.messages
        errors: list[dict] = []

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                text = field_errors[0] if isinstance(field_errors, list) and field_errors \
                    else str(field_errors)
                missing = str(text).startswith("Missing data for required field")
                entry = {
                    "code":    ErrorCode.MISSING_FIELD if missing else ErrorCode.INVALID_FIELD,
                    "message": text,
                }
                if field_name != "_schema":
                    entry["field"] = field_name
                errors.append(entry)
        else:
            for text in messages or ["Invalid input."]:
                errors.append({"code": ErrorCode.INVALID_FIELD, "message": str(text)})

        message = errors[0]["message"] if errors else "Invalid input."
        return jsonify(_failure_envelope(400, message, errors)), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        status = error.code or 500
        code = ErrorCode.ROUTE_NOT_FOUND if status == 404 else ErrorCode.INVALID_FIELD
        if status >= 500:
            code = ErrorCode.INTERNAL_ERROR
        return jsonify(_failure_envelope(status, error.description, [{"code": code}])), status

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        The full traceback goes to the application logger only.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify(_failure_envelope(
            500,
            "An unexpected error occurred. Please try again later.",
            [{"code": ErrorCode.INTERNAL_ERROR}],
        )), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for the browser client.

    Origins listed in CORS_ORIGIN are always allowed; in DEBUG or TESTING any
    origin is reflected. Credentials are allowed because the session lives
    in cookies.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if not origin:
            return response

        allow_any = bool(app.config.get("DEBUG") or app.config.get("TESTING"))
        if allow_any or origin in app.config.get("CORS_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response
