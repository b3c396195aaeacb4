"""Health endpoint tests."""

import shutil
from pathlib import Path

from fastapi.testclient import TestClient

from mdserve.app import create_app
from mdserve.config import Settings


def test_liveness_returns_alive(client: TestClient) -> None:
    """Liveness endpoint returns alive status."""
    response = client.get("/api/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_returns_ready(client: TestClient) -> None:
    """Readiness endpoint checks the served root."""
    response = client.get("/api/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"][0]["status"] == "ok"
    assert data["live_reload"]["watched_files"] == 0


def test_readiness_without_watch_omits_stats(docs_root: Path) -> None:
    """Live-reload stats are null when the feature is off."""
    app = create_app(Settings(directory=docs_root, watch=False))
    with TestClient(app) as test_client:
        response = test_client.get("/api/health/ready")

    assert response.status_code == 200
    assert response.json()["live_reload"] is None


def test_readiness_fails_when_root_missing(docs_root: Path) -> None:
    """A removed root makes the server not ready."""
    app = create_app(Settings(directory=docs_root, watch=False))
    with TestClient(app) as test_client:
        shutil.rmtree(docs_root)
        response = test_client.get("/api/health/ready")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["checks"][0]["message"] == "Directory not found"
