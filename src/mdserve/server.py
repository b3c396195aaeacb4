"""Uvicorn runner with graceful shutdown."""

import asyncio

import structlog
import uvicorn

from mdserve.app import create_app
from mdserve.config import Settings
from mdserve.lifecycle import GracefulShutdown

logger = structlog.get_logger()


async def serve(settings: Settings) -> None:
    """Run the server until SIGINT or SIGTERM.

    Args:
        settings: Server configuration.
    """
    app = create_app(settings)
    shutdown = GracefulShutdown()

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)

    shutdown.install_signal_handlers(asyncio.get_running_loop())

    async def stop_on_signal() -> None:
        await shutdown.wait_for_trigger()
        server.should_exit = True

    stopper = asyncio.create_task(stop_on_signal())
    try:
        await server.serve()
    finally:
        stopper.cancel()
