# agritrade/errors.py
from __future__ import annotations

import logging

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from agritrade import db

log = logging.getLogger(__name__)


class AgriTradeError(Exception):
    """Base error; carries the HTTP status it maps to."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict:
        return {"message": self.message}


class NotFound(AgriTradeError):
    status_code = 404
    message = "Not found"


class ValidationError(AgriTradeError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: list[str] | str, message: str | None = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(message or (self.errors[0] if len(self.errors) == 1 else None))

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class Conflict(AgriTradeError):
    status_code = 409
    message = "Already exists"


class StorageFailure(AgriTradeError):
    status_code = 500
    message = "Server error"


def register_error_handlers(app):
    @app.errorhandler(AgriTradeError)
    def _domain_error(e: AgriTradeError):
        if e.status_code >= 500:
            db.session.rollback()
            app.logger.exception("Request failed: %s", e)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def _storage_error(e: SQLAlchemyError):
        db.session.rollback()
        app.logger.exception("Storage failure: %s", e)
        return jsonify(StorageFailure().to_dict()), 500

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if e.code == 404 and e.description and "requested URL" in e.description:
            return jsonify({"message": "Route not found"}), 404
        return jsonify({"message": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", e)
        return jsonify({"message": "Server error"}), 500
