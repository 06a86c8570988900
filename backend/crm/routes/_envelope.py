# Overview: Uniform {success, error, details} error bodies.

import traceback

from flask import current_app, jsonify


def error_response(exc: Exception, status: int = 500):
    """Error envelope; the stack trace is only included outside production."""
    body = {"success": False, "error": str(exc) or "Internal server error"}
    if current_app.config.get("APP_ENV") != "production":
        body["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonify(body), status
