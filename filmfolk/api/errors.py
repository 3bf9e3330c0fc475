import logging

from flask import jsonify
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from filmfolk.api.context import get_storage
from filmfolk.utils.exceptions import DependencyError, FilmfolkError

logger = logging.getLogger(__name__)


def error_response(message: str, status: int, details: dict | None = None):
    payload = {"error": message}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def _rollback():
    try:
        get_storage().rollback()
    except Exception:  # noqa: BLE001
        logger.exception("rollback after failed request raised")


def register_error_handlers(app):
    @app.errorhandler(FilmfolkError)
    def handle_domain_error(err: FilmfolkError):
        if isinstance(err, DependencyError) or err.status_code >= 500:
            logger.error("%s: %s", err.__class__.__name__, err.message, exc_info=err)
        return error_response(err.message, err.status_code)

    # Schema failures carry per-field details
    @app.errorhandler(SchemaValidationError)
    def handle_validation_error(err: SchemaValidationError):
        return error_response("Invalid input", 400, details=err.messages)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        _rollback()
        lower_msg = str(getattr(err, "orig", err)).lower()
        logger.info("integrity error: %s", lower_msg)
        if "unique" in lower_msg or "duplicate" in lower_msg:
            return error_response("Resource already exists", 409)
        if "foreign key" in lower_msg:
            return error_response("Referenced resource does not exist", 400)
        if "check constraint" in lower_msg:
            return error_response("Check constraint failed", 400)
        return error_response("Integrity error", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        _rollback()
        logger.exception("Unhandled exception", exc_info=err)
        return error_response("An unexpected error occurred", 500)
