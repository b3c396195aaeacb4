"""Server-Sent Events endpoint for live reload."""

from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from sse_starlette import ServerSentEvent
from sse_starlette.sse import EventSourceResponse

from mdserve.content.paths import SecurityError, resolve_path
from mdserve.reload.clients import Client
from mdserve.reload.sink import QueueSink

if TYPE_CHECKING:
    from mdserve.config.settings import Settings
    from mdserve.reload.coordinator import ReloadCoordinator

logger = structlog.get_logger()

router = APIRouter(prefix="/live-reload", tags=["live-reload"])

SINK_SIZE = 32

# Frames are "data: <json>" plus a blank line, LF only.
FRAME_SEP = "\n"


async def stream_reload_events(
    coordinator: "ReloadCoordinator",
    path: Path,
    sink_size: int = SINK_SIZE,
) -> AsyncIterator[ServerSentEvent]:
    """Relay live-reload events for one file to one connection.

    Registers a client on first iteration, which delivers the connected
    event, and deregisters it exactly once when the stream ends, whether the
    client disconnected or the server closed the sink.

    Args:
        coordinator: Live-reload coordinator.
        path: Absolute path of the watched file.
        sink_size: Maximum undelivered frames for this connection.

    Yields:
        One server-sent event per reload notification.
    """
    sink = QueueSink(maxsize=sink_size)
    client = Client(str(path), sink)
    coordinator.watch(str(path), client)
    logger.info("reload_stream_opened", client_id=client.id, path=client.file_path)

    try:
        while True:
            frame = await sink.get()
            if frame is None:
                break
            yield ServerSentEvent(data=frame, sep=FRAME_SEP)
    finally:
        sink.close()
        coordinator.unwatch(client.id)
        logger.info("reload_stream_closed", client_id=client.id, path=client.file_path)


@router.get("")
async def live_reload(
    request: Request,
    file: str | None = Query(
        default=None,
        description="Path of the watched file relative to the served root",
    ),
) -> EventSourceResponse:
    """Stream change notifications for a served file.

    Each frame is ``data: <json>`` followed by a blank line, where the JSON
    object carries ``type``, ``filePath``, ``timestamp`` and, for errors,
    ``message``.

    Args:
        request: FastAPI request object.
        file: Target file relative to the served root.

    Returns:
        SSE response that stays open until the client disconnects.

    Raises:
        HTTPException: 503 if live reload is disabled, 400 if ``file`` is
            missing, 403 if it escapes the served root, 404 if it is not an
            existing file.
    """
    coordinator: ReloadCoordinator | None = request.app.state.reload_coordinator
    settings: Settings = request.app.state.settings

    if coordinator is None:
        raise HTTPException(status_code=503, detail="Live reload is not enabled")

    if not file:
        raise HTTPException(status_code=400, detail="Missing required query parameter: file")

    try:
        target = resolve_path(settings.root, file)
    except SecurityError as e:
        logger.warning("reload_path_rejected", path=e.path, reason=str(e))
        raise HTTPException(status_code=403, detail="Access forbidden") from e

    if not target.is_file():
        raise HTTPException(status_code=404, detail=f"File not found: {file}")

    return EventSourceResponse(
        stream_reload_events(coordinator, target),
        ping=max(int(settings.sse_ping_interval), 1),
        sep=FRAME_SEP,
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
