"""Output channels for streaming clients."""
import asyncio
from typing import Protocol

import structlog

logger = structlog.get_logger()


class ClientClosedError(Exception):
    """Raised when pushing a frame to a sink that has been closed."""


class ClientSink(Protocol):
    """Something a frame can be pushed to and that reports whether it is open."""

    @property
    def is_closed(self) -> bool: ...

    def push(self, frame: str) -> None: ...

    def close(self) -> None: ...


class QueueSink:
    """In-memory sink backed by a bounded asyncio queue.

    The streaming endpoint drains the queue and writes each frame to the
    HTTP response. When the queue is full the oldest frame is discarded so
    that a slow reader never blocks fan-out.

    Attributes:
        maxsize: Maximum number of undelivered frames.
    """

    def __init__(self, maxsize: int = 32) -> None:
        """Initialize sink.

        Args:
            maxsize: Maximum number of undelivered frames.
        """
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._dropped = 0

    @property
    def is_closed(self) -> bool:
        """Whether the sink no longer accepts frames."""
        return self._closed

    @property
    def dropped_frames(self) -> int:
        """Number of frames discarded because the reader fell behind."""
        return self._dropped

    def push(self, frame: str) -> None:
        """Enqueue a frame for delivery.

        Args:
            frame: Serialized event payload.

        Raises:
            ClientClosedError: If the sink has been closed.
        """
        if self._closed:
            raise ClientClosedError("sink is closed")

        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(frame)
            self._dropped += 1
            logger.debug("sink_frame_dropped", dropped=self._dropped)

    def close(self) -> None:
        """Close the sink and wake any pending reader.

        Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(None)

    async def get(self) -> str | None:
        """Wait for the next frame.

        Returns:
            The next frame, or None once the sink is closed and drained.
        """
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def drain(self) -> list[str]:
        """Return all frames currently queued without waiting."""
        frames: list[str] = []
        while not self._queue.empty():
            frame = self._queue.get_nowait()
            if frame is not None:
                frames.append(frame)
        return frames
