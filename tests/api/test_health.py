"""
Tests for health check endpoint.
"""

from datetime import datetime
from unittest.mock import Mock

from fastapi.testclient import TestClient

from reelforge.api.main import create_app


def _client():
    return TestClient(create_app(orchestrator=Mock()))


def test_health_check():
    """Test basic health check endpoint."""
    response = _client().get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "ok"
    assert data["timestamp"].endswith("Z")
    datetime.fromisoformat(data["timestamp"].rstrip("Z"))


def test_health_sets_process_time_header():
    response = _client().get("/health")
    assert float(response.headers["X-Process-Time"]) >= 0


def test_unknown_route_is_404():
    response = _client().get("/nope")
    assert response.status_code == 404
