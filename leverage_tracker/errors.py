"""Exception hierarchy and the JSON error handlers that map it to HTTP."""

from typing import Optional

from flask import Response, jsonify, request
from werkzeug.exceptions import HTTPException

API_PREFIX = "/api"


class LeverageTrackerError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputError(LeverageTrackerError):
    """Missing or out-of-range input."""

    status_code = 400


class InsufficientBankrollError(InputError):
    """The requested stake is larger than the available bankroll."""

    def __init__(self, available: float):
        super().__init__(
            f"Insufficient bankroll: only {available:.2f} available"
        )
        self.available = available


class AuthenticationError(LeverageTrackerError):
    """Missing credentials, unknown user or wrong password."""

    status_code = 401


class InvalidTokenError(AuthenticationError):
    """Bearer token is malformed, tampered with or expired."""

    status_code = 403


class NotFoundError(LeverageTrackerError):
    """Resource does not exist, is not owned by the caller or has the wrong status."""

    status_code = 404


class StorageError(LeverageTrackerError):
    """The backing store failed."""

    status_code = 500


class MalformedRecordError(StorageError):
    """A persisted record does not match the expected schema."""

    pass


class ConfigurationError(LeverageTrackerError):
    """Invalid or missing configuration."""

    pass


def _wants_json():
    return request.path.startswith(API_PREFIX)


def register_error_handlers(app):
    @app.errorhandler(LeverageTrackerError)
    def handle_app_error(error):
        message = error.message
        if isinstance(error, StorageError):
            app.logger.exception("Storage failure on %s %s: %s", request.method, request.path, error.message)
            message = "Internal server error"
        if not _wants_json():
            return Response(message, status=error.status_code, mimetype="text/plain")
        return jsonify({"error": message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if not _wants_json():
            return error
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        if _wants_json():
            return jsonify({"error": "Internal server error"}), 500
        return "Internal server error", 500
