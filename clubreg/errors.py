"""Error taxonomy and the JSON error boundary."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from clubreg.extensions import db


class ClubRegError(Exception):
    """Base class for failures that map to an HTTP response."""

    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None, **payload: Any):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.payload = payload

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {'error': self.message}
        body.update(self.payload)
        return body


class ValidationError(ClubRegError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(ClubRegError):
    status_code = 404
    default_message = "Not found"


class Unauthorized(ClubRegError):
    status_code = 401
    default_message = "Unauthorized"


class SignatureInvalid(ClubRegError):
    status_code = 400
    default_message = "Invalid signature"


class UpstreamFailure(ClubRegError):
    status_code = 502
    default_message = "Payment provider unavailable"


class PersistenceFailure(ClubRegError):
    status_code = 503
    default_message = "Database unavailable"


def register_error_handlers(app) -> None:
    """Convert every failure into a JSON error body."""

    @app.errorhandler(ClubRegError)
    def handle_clubreg_error(error: ClubRegError):
        if error.status_code >= 500:
            current_app.logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError):
        db.session.rollback()
        current_app.logger.error(f"Database error: {error}")
        failure = PersistenceFailure()
        return jsonify(failure.to_dict()), failure.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({'error': error.description or error.name}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        current_app.logger.error(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500


__all__ = [
    'ClubRegError',
    'ValidationError',
    'NotFound',
    'Unauthorized',
    'SignatureInvalid',
    'UpstreamFailure',
    'PersistenceFailure',
    'register_error_handlers',
]
