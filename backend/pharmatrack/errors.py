# Overview: Error taxonomy shared by services and routes, plus the JSON error handlers.

"""
Every service raises one of these; routes never build error responses by hand.
The handlers registered here render the standard envelope:

    {"success": false, "message": "...", "code": "...", "details": {...}}

Cross-tenant lookups are raised as NotFoundError so a caller can never tell
"exists in another shop" apart from "does not exist".
"""

from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db


class AppError(Exception):
    """Base for all classified errors."""
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code:
            self.code = code


class ValidationError(AppError):
    """400-level input problem."""
    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictError(AppError):
    """Uniqueness violation (duplicate username, etc.)."""
    status_code = 400
    code = "CONFLICT"


class InsufficientStockError(AppError):
    status_code = 400
    code = "INSUFFICIENT_STOCK"


class AuthError(AppError):
    """Missing, invalid or expired credential, or bad login."""
    status_code = 401
    code = "AUTH_REQUIRED"


class ForbiddenError(AppError):
    """Authenticated but the role is not entitled to the action."""
    status_code = 403
    code = "FORBIDDEN"


class SubscriptionError(AppError):
    """Tenant gate blocked: the client should route to billing, not login."""
    status_code = 403
    code = "SUBSCRIPTION_BLOCKED"

    def __init__(self, message: str, status: str | None = None, details: dict | None = None):
        super().__init__(message, details=details)
        self.subscription_status = status


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class TooManyAttemptsError(AppError):
    status_code = 429
    code = "TOO_MANY_ATTEMPTS"


def error_payload(message: str, code: str | None = None, details: dict | None = None) -> dict:
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    if details:
        body["details"] = details
    return body


def register_error_handlers(app) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        db.session.rollback()
        details = dict(exc.details)
        if isinstance(exc, SubscriptionError) and exc.subscription_status:
            details.setdefault("subscription_status", exc.subscription_status)
        if exc.status_code >= 500:
            current_app.logger.error("Unhandled application error: %s", exc.message)
        return jsonify(error_payload(exc.message, exc.code, details)), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        message = exc.description if exc.code and exc.code < 500 else "Internal server error"
        if exc.code == 404:
            message = "Route not found"
        return jsonify(error_payload(message, exc.name.upper().replace(" ", "_"))), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unexpected error")
        body = error_payload("Internal server error", AppError.code)
        if current_app.debug:
            body["error"] = str(exc)
        return jsonify(body), 500
