import logging

from dotenv import load_dotenv
from flask import Flask

# Load environment variables from .env file
load_dotenv()

# Initialize logger
logger = logging.getLogger(__name__)

__version__ = "1.0.0"

__all__ = ["create_app", "__version__"]


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_name: Configuration to use (development, testing, production).
                    Defaults to the FLASK_ENV environment variable.
    Returns:
        Flask: The configured Flask application instance.
    """
    from config import get_config

    config = get_config(config_name)

    # Create the Flask application
    app = Flask(__name__)

    # Load configuration from config object
    app.config.from_object(config)

    # Configure app components
    _configure_app_settings(app)
    _configure_logging(app)
    _initialize_components(app)
    _initialize_cli(app)

    return app


def _configure_app_settings(app: Flask) -> None:
    """Configure basic application settings and validation."""
    # Ensure required config values are set
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise ValueError("SQLALCHEMY_DATABASE_URI is not configured")

    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)


def _configure_logging(app: Flask) -> None:
    """Configure application logging."""
    log_level = logging.DEBUG if app.debug else logging.INFO
    logger.setLevel(log_level)
    app.logger.setLevel(log_level)

    # Log app configuration
    logger.debug("Application configuration:")
    logger.debug(f"- ENVIRONMENT: {app.config.get('ENVIRONMENT', 'Not set')}")
    logger.debug(f"- DEBUG: {app.debug}")
    logger.debug(f"- DATABASE_URI: {app.config.get('SQLALCHEMY_DATABASE_URI', 'Not set')}")
    logger.debug(f"- PRICE_TIERS: {', '.join(app.config.get('RESTAURANT_PRICE_TIERS', ()))}")


def _initialize_components(app: Flask) -> None:
    """Initialize core application components."""
    from .database import init_database
    from .errors import init_app as init_errors
    from .extensions import init_app as init_extensions
    from .restaurants.services import init_app as init_restaurant_service

    # Initialize extensions
    init_extensions(app)

    # Initialize the database
    init_database(app)

    # Build the restaurant service from the frozen configuration
    init_restaurant_service(app)

    # Register blueprints
    _register_blueprints(app)

    # Register error handlers
    init_errors(app)
    logger.debug("Registered error handlers")

    # Log registered routes
    _log_registered_routes(app)


def _initialize_cli(app: Flask) -> None:
    """Initialize CLI commands."""
    from .cli import register_commands

    register_commands(app)
    logger.debug("Initialized CLI commands")


def _register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from .api import bp as api_bp
    from .health import bp as health_bp

    blueprint_configs = [
        (api_bp, "/api/v1"),
        (health_bp, "/health"),
    ]

    for bp, url_prefix in blueprint_configs:
        app.register_blueprint(bp, url_prefix=url_prefix)
        logger.debug(f"Registered blueprint: {bp.name} at {url_prefix}")


def _log_registered_routes(app: Flask) -> None:
    """Log all registered routes for debugging."""
    logger.debug("Registered routes:")
    for rule in app.url_map.iter_rules():
        methods = list(rule.methods - {"OPTIONS", "HEAD"})
        logger.debug(f"  {rule.endpoint}: {rule.rule} {methods}")
