from flask import Blueprint, current_app, jsonify

from .errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    IntegrityError,
    NotFoundError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(error):
    return jsonify({"success": False, "error": error.to_dict()}), error.status_code


@error_handlers_bp.app_errorhandler(AuthenticationError)
def handle_authentication_error(error):
    """Handles requests without a verifiable caller identity."""
    current_app.logger.warning(f"Authentication Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(AuthorizationError)
def handle_authorization_error(error):
    """Handles callers without organizer/admin rights."""
    current_app.logger.warning(f"Authorization Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(IntegrityError)
def handle_integrity_error(error):
    """Handles corrupted or incompletely generated brackets."""
    current_app.logger.error(f"Integrity Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.warning(f"Application Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return (
        jsonify(
            {"success": False, "error": {"code": "not-found", "message": "Not found."}}
        ),
        404,
    )


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    # Avoid exposing raw error details to the caller
    return (
        jsonify(
            {
                "success": False,
                "error": {
                    "code": "internal",
                    "message": "An unexpected error occurred. Please try again later.",
                },
            }
        ),
        500,
    )
