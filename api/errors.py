import logging

from flask import request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError

from utils.errors import AppError, ErrorKind
from .responses import error_response

logger = logging.getLogger(__name__)


def app_error_response(err: AppError):
    if err.kind.is_server_error:
        logger.error("%s %s failed: %s", request.method, request.path, err.message, exc_info=err)
    elif err.kind is ErrorKind.AUTHENTICATION:
        logger.info("%s %s rejected: %s", request.method, request.path, err.message)
    return error_response(err.status, err.code, err.public_message, err.public_details)


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        return app_error_response(err)

    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return app_error_response(AppError.validation("Invalid request data", details=err.messages))

    # 404 Not Found (unknown route)
    @app.errorhandler(404)
    def not_found(e):
        return error_response(404, "NOT_FOUND", "Route not found")

    # Other werkzeug HTTPExceptions fold into the error taxonomy:
    # 405 has no route for the method, any other 4xx is malformed input.
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 500
        if status >= 500:
            logger.error("%s %s failed with HTTP %s", request.method, request.path, status)
            kind = ErrorKind.UNEXPECTED
            return error_response(kind.status, kind.code, "An unexpected error occurred")
        if status == 405:
            return not_found(err)
        return app_error_response(AppError.validation(err.description or "Invalid request"))

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        kind = ErrorKind.UNEXPECTED
        return error_response(kind.status, kind.code, "An unexpected error occurred")
