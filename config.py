"""Application configuration.

This module provides environment-specific configuration settings for the application.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from restodir.constants.prices import PRICE_TIERS
from restodir.constants.weekdays import WEEKDAYS


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Read a comma separated list from the environment."""
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


class Config:
    """Base configuration with settings common to all environments."""

    # Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-key-change-in-production")

    # Flask settings
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    TESTING: bool = False
    JSON_SORT_KEYS: bool = False

    # Database settings
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ENGINE_OPTIONS: Dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_recycle": 300,  # 5 minutes
    }

    # Application settings
    APP_NAME: str = os.getenv("APP_NAME", "restaurant-directory")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "dev")

    # Upload limits
    MAX_CONTENT_LENGTH: int = 5 * 1024 * 1024  # 5MB max image size

    # Restaurant rules
    RESTAURANT_PRICE_TIERS: Tuple[str, ...] = _env_list("RESTAURANT_PRICE_TIERS", PRICE_TIERS)
    RESTAURANT_WEEKDAYS: Tuple[str, ...] = _env_list("RESTAURANT_WEEKDAYS", WEEKDAYS)
    RESTAURANT_DEFAULT_MAX_DISTANCE: float = float(os.getenv("RESTAURANT_DEFAULT_MAX_DISTANCE", "10000"))
    SCORE_UPDATE_RETRIES: int = int(os.getenv("SCORE_UPDATE_RETRIES", "5"))

    # Image hosting (S3)
    IMAGE_BUCKET: Optional[str] = os.getenv("IMAGE_BUCKET")
    IMAGE_REGION: str = os.getenv("IMAGE_REGION", "us-east-1")
    IMAGE_PREFIX: str = os.getenv("IMAGE_PREFIX", "restaurants/")
    IMAGE_PUBLIC_BASE_URL: Optional[str] = os.getenv("IMAGE_PUBLIC_BASE_URL")

    def __init__(self) -> None:
        """Initialize configuration."""
        os.environ.setdefault("FLASK_ENV", "development")

        # Configure database URI
        self.SQLALCHEMY_DATABASE_URI = self._get_database_uri()

    def _get_database_uri(self) -> str:
        """Get the appropriate database URI for the current environment."""
        # Handle Heroku-style database URLs
        if "DATABASE_URL" in os.environ:
            uri = os.environ["DATABASE_URL"]
            if uri.startswith("postgres://"):
                uri = uri.replace("postgres://", "postgresql://", 1)
            return uri

        # Default to SQLite in development
        instance_path = Path(__file__).parent / "instance"
        instance_path.mkdir(exist_ok=True)
        return f'sqlite:///{instance_path}/restodir-{os.getenv("FLASK_ENV")}.db'


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG: bool = True


class UnitTestConfig(Config):  # noqa: D101
    """Testing configuration."""

    TESTING: bool = True
    DEBUG: bool = True
    IMAGE_BUCKET: Optional[str] = "test-images"

    def _get_database_uri(self) -> str:
        return "sqlite:///:memory:"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG: bool = False
    TESTING: bool = False


_CONFIGS = {
    "development": DevelopmentConfig,
    "testing": UnitTestConfig,
    "production": ProductionConfig,
}


def get_config(config_name: Optional[str] = None) -> Config:
    """Get the appropriate configuration based on environment.

    Args:
        config_name: Explicit configuration name; falls back to FLASK_ENV when omitted.
    """
    env = (config_name or os.getenv("FLASK_ENV", "development")).lower()

    config_class = _CONFIGS.get(env, DevelopmentConfig)
    return config_class()
