"""Liveness and readiness probes."""
import os
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mdserve.reload.types import ReloadStats

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Body of the liveness probe."""

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Result of checking one thing the server depends on.

    Attributes:
        name: What was checked, e.g. ``root:/srv/docs``.
        status: ``ok`` or ``failed``.
        message: Why the check failed.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Body of the readiness probe.

    Attributes:
        status: ``ready`` when every check passed.
        checks: Individual check results.
        live_reload: Watch and client counts, None when live reload is off.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]
    live_reload: ReloadStats | None = None


def check_served_root(root: Path) -> ReadinessCheck:
    """Check that the served root is a directory the server can list."""
    name = f"root:{root}"
    if not root.is_dir():
        return ReadinessCheck(name=name, status="failed", message="Directory not found")
    if not os.access(root, os.R_OK | os.X_OK):
        return ReadinessCheck(name=name, status="failed", message="Permission denied")
    return ReadinessCheck(name=name, status="ok")


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Report that the process is up."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Report whether pages can be served.

    Returns 503 when the served root is unavailable. Live-reload counts are
    included so that leaked watches show up in monitoring.

    Returns:
        Readiness status with individual check results.
    """
    checks = [check_served_root(request.app.state.settings.root)]
    coordinator = request.app.state.reload_coordinator
    ready = all(check.status == "ok" for check in checks)

    body = ReadinessResponse(
        status="ready" if ready else "not_ready",
        checks=checks,
        live_reload=coordinator.stats() if coordinator is not None else None,
    )
    return JSONResponse(
        content=body.model_dump(),
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
