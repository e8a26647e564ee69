"""Tests for the status endpoint."""

from importlib.metadata import PackageNotFoundError
from unittest.mock import patch


def test_status_is_public(client):
  response = client.get("/status")

  assert response.status_code == 200
  data = response.json()
  assert data["status"] == "healthy"
  assert data["environment"] == "test"
  assert "timestamp" in data


def test_status_version(client):
  with patch("saasbilling.routers.status.version", return_value="1.2.3"):
    response = client.get("/status")
  assert response.json()["version"] == "1.2.3"


def test_status_version_unknown(client):
  with patch(
    "saasbilling.routers.status.version",
    side_effect=PackageNotFoundError("saasbilling-service"),
  ):
    response = client.get("/status")
  assert response.json()["version"] == "unknown"


def test_security_headers(client):
  response = client.get("/status")
  assert response.headers["x-content-type-options"] == "nosniff"
  assert response.headers["x-frame-options"] == "DENY"
