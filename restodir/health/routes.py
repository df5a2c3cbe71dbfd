"""Health check endpoints for the application."""

from datetime import UTC, datetime
import logging
from typing import cast

from flask import Response, current_app, jsonify
from sqlalchemy import text

from restodir import __version__
from restodir.extensions import db

from . import bp  # Import the blueprint from __init__.py

# Configure logger
logger = logging.getLogger(__name__)


@bp.route("/")
def check() -> Response:
    """Health check endpoint to verify the application and database are running.

    Returns:
        JSON: Status, version, database connectivity and image host information
    """
    try:
        db.session.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database connection error: {str(e)}")
        db_status = f"error: {str(e)}"

    service = current_app.extensions.get("restaurant_service")
    image_status = "configured" if service is not None and service.image_host is not None else "not configured"

    return cast(
        Response,
        jsonify(
            {
                "status": "ok",
                "version": __version__,
                "timestamp": datetime.now(UTC).isoformat(),
                "database": db_status,
                "image_host": image_status,
            }
        ),
    )
