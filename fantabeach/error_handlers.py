from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from .errors import AppError, DuplicateResourceError, NotFoundError, ValidationError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _envelope(code, message, status_code):
    return jsonify({"code": code, "message": message}), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _envelope("not_found", "Page Not Found", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests with an unsupported method."""
    return _envelope("method_not_allowed", "Method Not Allowed", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _envelope("internal_error", "An unexpected error occurred.", 500)


@error_handlers_bp.app_errorhandler(SQLAlchemyError)
def handle_db_error(e):
    """Handles database errors."""
    current_app.logger.error(f"Database Error: {e}")
    # Avoid exposing raw database error details to the caller
    return _envelope(
        "database_error", "A database error occurred. Please try again later.", 500
    )

