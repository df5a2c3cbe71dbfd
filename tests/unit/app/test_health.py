"""Tests for the health check endpoint."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from restodir import __version__


def test_health_check(client):
    response = client.get("/health/")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["database"] == "connected"
    assert data["image_host"] == "configured"
    assert "timestamp" in data


def test_health_check_reports_database_errors(client):
    with patch("restodir.health.routes.db.session.execute") as mock_execute:
        mock_execute.side_effect = OperationalError("SELECT 1", {}, Exception("unreachable"))
        response = client.get("/health/")

    assert response.status_code == 200
    assert response.get_json()["database"].startswith("error:")


def test_health_check_without_image_host(app, client):
    app.extensions["restaurant_service"].image_host = None

    assert client.get("/health/").get_json()["image_host"] == "not configured"
