"""
responses.py — Success envelope shared by every route.

    {"statusCode": 200, "data": {...}, "message": "...", "success": true}

Failures use AppError.to_dict() instead (see errors.py).
"""

from __future__ import annotations

from flask import Response, jsonify


def api_response(status_code: int, data, message: str = "Success") -> Response:
    """Builds the JSON envelope and returns a Response with its status set."""
    response = jsonify({
        "statusCode": status_code,
        "data":       data,
        "message":    message,
        "success":    status_code < 400,
    })
    response.status_code = status_code
    return response
