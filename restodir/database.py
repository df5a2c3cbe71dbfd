"""Database configuration and utilities for the restaurant directory.

This module provides a centralized way to manage database connections,
initialization, and utilities for the application.
"""

from __future__ import annotations

import logging
import os

from flask import Flask, current_app

from .extensions import db

# Configure logger
logger = logging.getLogger(__name__)

__all__ = [
    "db",
    "init_database",
    "create_tables",
    "drop_tables",
]


def _get_database_uri_from_env() -> str | None:
    """Get database URI from environment variable."""
    db_url = os.environ.get("DATABASE_URL")
    if not db_url:
        return None

    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)

    return db_url


def _get_database_uri_from_app_config(app: Flask | None = None) -> str | None:
    """Get database URI from app config."""
    try:
        app_to_use = app or current_app._get_current_object()
        if app_to_use.config.get("SQLALCHEMY_DATABASE_URI"):
            return str(app_to_use.config["SQLALCHEMY_DATABASE_URI"])
    except RuntimeError:
        pass
    return None


def _get_database_uri(app: Flask | None = None) -> str:
    """Get the database URI with proper fallback logic.

    Priority order:
    1. SQLALCHEMY_DATABASE_URI from app config
    2. DATABASE_URL environment variable (with postgres:// to postgresql:// conversion)
    3. In-memory SQLite as last resort
    """
    db_url = _get_database_uri_from_app_config(app)
    if db_url:
        return db_url

    db_url = _get_database_uri_from_env()
    if db_url:
        return db_url

    logger.warning("No database configured, using in-memory SQLite database")
    return "sqlite:///:memory:"


def init_database(app: Flask) -> None:
    """Initialize the database with the Flask app.

    Configures SQLAlchemy with the resolved database URI and creates any
    missing tables.
    """
    # Only initialize if not already done
    if "sqlalchemy" in app.extensions:
        return

    try:
        db_uri = _get_database_uri(app)
        app.config["SQLALCHEMY_DATABASE_URI"] = db_uri
        app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

        # Configure connection pooling for production databases
        if not db_uri.startswith("sqlite"):
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
                "pool_pre_ping": True,
                "pool_recycle": 300,  # Recycle connections after 5 minutes
                "pool_size": 5,
                "max_overflow": 10,
            }
        else:
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {}

        db.init_app(app)

        # Tables are registered on the metadata when the models are imported
        from . import models  # noqa: F401

        with app.app_context():
            db.create_all()
        logger.info(f"Database initialized successfully with URI: {db_uri}")

    except Exception as e:
        logger.error("Failed to initialize database: %s", e)
        raise RuntimeError(f"Failed to initialize database: {e}") from e


def create_tables() -> None:
    """Create all database tables if they don't exist."""
    with current_app.app_context():
        db.create_all()


def drop_tables() -> None:
    """Drop all database tables."""
    with current_app.app_context():
        db.drop_all()
