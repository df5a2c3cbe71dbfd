"""Pytest configuration and fixtures for the test suite."""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

import pytest
from flask import Flask
from flask.testing import FlaskClient, FlaskCliRunner

# Add the project root to the Python path first to avoid import issues
project_root = str(Path(__file__).parent.parent)
sys.path.insert(0, project_root)

# Set test environment variables before the configuration is loaded
os.environ.update(
    {
        "FLASK_ENV": "testing",
        "SECRET_KEY": "test-secret-key",
        "TESTING": "True",
    }
)

from restodir import create_app  # noqa: E402
from restodir.extensions import db  # noqa: E402
from restodir.images import ImageUploadError  # noqa: E402
from restodir.restaurants.services import RestaurantService  # noqa: E402
from restodir.store import DataAccess  # noqa: E402

AUTHOR = "owner@example.com"


class FakeImageHost:
    """In-memory image host recording every upload."""

    def __init__(self) -> None:
        self.uploads: List[Tuple[bytes, Optional[str]]] = []
        self.fail = False

    def upload(self, data: bytes, content_type: Optional[str] = None) -> str:
        if self.fail:
            raise ImageUploadError("upload rejected")
        self.uploads.append((data, content_type))
        return f"https://images.example.com/restaurants/{len(self.uploads)}.jpg"


def make_restaurant_payload(**overrides: Any) -> Dict[str, Any]:
    """Return a complete, valid restaurant payload."""
    payload: Dict[str, Any] = {
        "name": "Tasca do Chico",
        "type": "Portuguese",
        "price": "$$",
        "location": {"type": "Point", "coordinates": [-9.1427, 38.7110]},
        "schedule": {
            "monday": {"start": {"hour": 12, "minute": 0}, "end": {"hour": 23, "minute": 30}},
            "friday": {"start": {"hour": 18, "minute": 0}, "end": {"hour": 2, "minute": 0}},
        },
        "contacts": [{"name": "phone", "value": "+351 21 343 1040"}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture(scope="function")
def app() -> Generator[Flask, None, None]:
    """Create and configure a new app instance for testing.

    This fixture is function-scoped to ensure a clean database for each test.
    """
    app = create_app("testing")

    # Push application context
    ctx = app.app_context()
    ctx.push()

    yield app

    # Clean up after tests
    db.session.remove()
    db.drop_all()

    # Pop the application context
    ctx.pop()


@pytest.fixture
def image_host(app: Flask) -> FakeImageHost:
    """Replace the application's image host with an in-memory one."""
    host = FakeImageHost()
    app.extensions["restaurant_service"].image_host = host
    return host


@pytest.fixture
def service(app: Flask, image_host: FakeImageHost) -> RestaurantService:
    """The restaurant service of the test application."""
    return app.extensions["restaurant_service"]


@pytest.fixture
def store(app: Flask) -> DataAccess:
    """Data access bound to the test database session."""
    return DataAccess()


@pytest.fixture
def client(app: Flask, image_host: FakeImageHost) -> FlaskClient:
    """Create a test client for the application."""
    return app.test_client()


@pytest.fixture
def runner(app: Flask) -> FlaskCliRunner:
    """Create a CLI runner for testing Click commands.

    Args:
        app: The Flask application fixture.

    Returns:
        FlaskCliRunner: The CLI test runner.
    """
    return app.test_cli_runner()


@pytest.fixture
def make_payload():
    """Factory for valid restaurant payloads with field overrides."""
    return make_restaurant_payload


@pytest.fixture
def restaurant_payload() -> Dict[str, Any]:
    return make_restaurant_payload()


@pytest.fixture
def restaurant_id(service: RestaurantService, restaurant_payload: Dict[str, Any]) -> int:
    """Create a restaurant through the service and return its ID."""
    result = service.add(json.dumps(restaurant_payload), AUTHOR)
    assert result.ok, result.error
    return result.value
