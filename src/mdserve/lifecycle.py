"""Signal-driven shutdown coordination for the server process."""
import asyncio
import signal

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Turns SIGINT/SIGTERM into a single awaitable shutdown signal.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
    """

    def __init__(self) -> None:
        """Initialize shutdown coordinator."""
        self._event = asyncio.Event()

    @property
    def is_triggered(self) -> bool:
        """Whether shutdown has been triggered."""
        return self._event.is_set()

    def trigger(self) -> None:
        """Signal shutdown. Idempotent."""
        if self._event.is_set():
            return
        logger.info("shutdown_triggered")
        self._event.set()

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Trigger shutdown on SIGTERM and SIGINT.

        Platforms without loop signal support keep the default handlers.

        Args:
            loop: Running event loop.
        """
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.trigger)
            except NotImplementedError:
                logger.debug("signal_handler_unsupported", signal=sig.name)

    async def wait_for_trigger(self) -> None:
        """Block until trigger() is called."""
        await self._event.wait()
