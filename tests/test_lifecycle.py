"""Shutdown coordination and request logging tests."""

import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from mdserve.app import create_app
from mdserve.config import Settings
from mdserve.lifecycle import GracefulShutdown


@pytest.mark.asyncio
async def test_trigger_releases_waiters() -> None:
    """Waiters wake once shutdown is triggered, and triggering twice is harmless."""
    shutdown = GracefulShutdown()
    waiter = asyncio.create_task(shutdown.wait_for_trigger())
    await asyncio.sleep(0)
    assert not waiter.done()

    shutdown.trigger()
    shutdown.trigger()

    await asyncio.wait_for(waiter, timeout=1.0)
    assert shutdown.is_triggered


def test_lifespan_releases_watches(settings: Settings) -> None:
    """Leaving the app lifespan stops the live-reload coordinator."""
    app = create_app(settings)
    with TestClient(app):
        coordinator = app.state.reload_coordinator
        assert coordinator.is_running

    assert not coordinator.is_running
    assert coordinator.stats().watched_files == 0


def test_verbose_logs_requests_but_not_probes(docs_root: Path) -> None:
    """Verbose mode logs page requests and skips health checks."""
    app = create_app(Settings(directory=docs_root, verbose=True))
    with TestClient(app) as client, capture_logs() as logs:
        client.get("/a.md")
        client.get("/api/health/live")

    requests = [entry for entry in logs if entry["event"] == "http_request"]
    assert [entry["path"] for entry in requests] == ["/a.md"]
    assert requests[0]["status"] == 200
