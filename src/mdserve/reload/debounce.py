"""Per-path trailing-edge debounce timers."""
import asyncio
from collections.abc import Callable

import structlog

logger = structlog.get_logger()


class DebounceTimers:
    """Coalesces bursts of raw change events into one callback per path.

    Each raw event cancels the pending timer for its path and schedules a
    new one, so the callback fires ``delay_ms`` after the last event of a
    burst. Timers run on the event loop and must be driven from its thread.

    Attributes:
        delay_ms: Quiet period before a pending path fires.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_fire: Callable[[str], None],
        delay_ms: int = 500,
    ) -> None:
        """Initialize timer set.

        Args:
            loop: Event loop timers are scheduled on.
            on_fire: Called with the path when its timer fires.
            delay_ms: Quiet period in milliseconds.
        """
        if delay_ms < 0:
            raise ValueError("delay_ms must be non-negative")
        self._loop = loop
        self._on_fire = on_fire
        self._delay_ms = delay_ms
        self._pending: dict[str, asyncio.TimerHandle] = {}
        self._coalesced_count = 0

    @property
    def delay_ms(self) -> int:
        """Quiet period in milliseconds."""
        return self._delay_ms

    @property
    def pending(self) -> int:
        """Number of paths with a scheduled notification."""
        return len(self._pending)

    @property
    def coalesced_events(self) -> int:
        """Number of raw events absorbed into an already pending timer."""
        return self._coalesced_count

    def is_pending(self, path: str) -> bool:
        """Whether a notification is scheduled for a path."""
        return path in self._pending

    def on_raw_change(self, path: str) -> None:
        """Record a raw change and (re)start the path's timer.

        Args:
            path: Absolute path that changed.
        """
        existing = self._pending.pop(path, None)
        if existing is not None:
            existing.cancel()
            self._coalesced_count += 1

        self._pending[path] = self._loop.call_later(
            self._delay_ms / 1000.0,
            self._fire,
            path,
        )

    def cancel(self, path: str) -> bool:
        """Cancel a path's pending timer without firing.

        Args:
            path: Absolute path.

        Returns:
            True if a timer was pending.
        """
        handle = self._pending.pop(path, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        """Cancel every pending timer without firing."""
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    def _fire(self, path: str) -> None:
        if self._pending.pop(path, None) is None:
            return

        logger.debug("reload_debounce_fired", path=path)
        try:
            self._on_fire(path)
        except Exception as e:
            logger.error("reload_debounce_callback_error", error=str(e), path=path)
