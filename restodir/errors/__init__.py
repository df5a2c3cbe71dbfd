"""Error handling for the application.

All responses are JSON; failures use the same envelope as the API routes.
"""

from __future__ import annotations

import logging
from typing import Tuple

from flask import Blueprint, Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

from restodir.restaurants.exceptions import RestaurantServiceError

logger = logging.getLogger(__name__)

# Initialize Blueprint
bp = Blueprint("errors", __name__)


def init_app(app: Flask) -> None:
    """Initialize error handlers with the Flask application."""
    app.register_blueprint(bp)

    # Register global error handlers
    app.register_error_handler(RestaurantServiceError, handle_service_error)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(Exception, handle_exception)


def _create_error_response(message: str, status_code: int, code: str | None = None) -> Tuple[Response, int]:
    """Create a standardized error response.

    Args:
        message: The error message
        status_code: The HTTP status code
        code: Machine readable error code, defaults to the status code

    Returns:
        JSON response and status code
    """
    response = jsonify({"status": "error", "message": message, "code": code or status_code})
    return response, status_code


def handle_service_error(error: RestaurantServiceError) -> Tuple[Response, int]:
    """Handle restaurant service errors raised outside the result boundary."""
    return jsonify(error.to_dict()), error.status_code


def handle_http_exception(error: HTTPException) -> Tuple[Response, int]:
    """Handle HTTP exceptions."""
    status_code = error.code if error.code is not None else 500
    return _create_error_response(error.description or "HTTP error occurred", status_code)


def handle_exception(error: Exception) -> Tuple[Response, int]:
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {str(error)}", exc_info=True)
    return _create_error_response("An unexpected error occurred", 500)
