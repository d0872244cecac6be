"""
Centralized error handlers for Flask applications.
"""

from http import HTTPStatus

from flask import Flask, jsonify, request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from cafeqr_shared.errors import AppError, StoreUnavailableError, TenantMovedError
from cafeqr_shared.logging_config import get_logger
from cafeqr_shared.serializers import error_response
from cafeqr_shared.validation import field_errors_from_pydantic

logger = get_logger(__name__)


def moved_location(canonical_slug: str) -> str:
    """Current request path with the stale slug swapped for the canonical one."""
    old_slug = (request.view_args or {}).get("slug")
    path = request.path
    if old_slug:
        path = path.replace(f"/{old_slug}/", f"/{canonical_slug}/", 1)
    if request.query_string:
        path = f"{path}?{request.query_string.decode()}"
    return path


def moved_response(canonical_slug: str):
    error = TenantMovedError(canonical_slug)
    location = moved_location(canonical_slug)
    response = jsonify(error_response(error.message, {**error.to_details(), "location": location}))
    response.status_code = error.status
    response.headers["Location"] = location
    return response


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        """Handle controlled application errors."""
        if e.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error(f"{type(e).__name__} on {request.path}: {e.message}")
        else:
            logger.warning(f"{type(e).__name__} on {request.path}: {e.message}")
        return jsonify(error_response(e.message, e.to_details())), e.status

    @app.errorhandler(TenantMovedError)
    def handle_tenant_moved(e: TenantMovedError):
        logger.info(f"Stale slug on {request.path}; moved to {e.canonical_slug}")
        return moved_response(e.canonical_slug)

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        logger.warning(f"Pydantic validation error: {e}")
        details = {"code": "VALIDATION_ERROR", "fields": field_errors_from_pydantic(e)}
        return jsonify(error_response("Data tidak valid", details)), HTTPStatus.BAD_REQUEST

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        logger.error(f"Database error: {e}", exc_info=True)
        unavailable = StoreUnavailableError()
        return jsonify(
            error_response(unavailable.message, unavailable.to_details())
        ), unavailable.status

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        """Handle HTTP exceptions from Werkzeug."""
        logger.warning(f"HTTP exception {e.code}: {e.description}")
        return jsonify(error_response(e.description or str(e))), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        """Handle any unhandled exceptions."""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify(
            error_response("Terjadi kesalahan pada server", {"code": "SYSTEM_001"})
        ), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify(
            error_response("Halaman tidak ditemukan", {"code": "NOT_FOUND"})
        ), HTTPStatus.NOT_FOUND

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify(error_response("Metode tidak diizinkan")), HTTPStatus.METHOD_NOT_ALLOWED
