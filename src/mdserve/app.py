"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from mdserve.auth import SessionAuthMiddleware, create_auth_router
from mdserve.config import Settings
from mdserve.middleware.logging import RequestLoggingMiddleware
from mdserve.reload import ReloadCoordinator
from mdserve.routes import health, pages, reload

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start live reload on startup and release every watch on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    coordinator: ReloadCoordinator | None = app.state.reload_coordinator
    logger.info(
        "server_startup",
        root=str(settings.root),
        host=settings.host,
        port=settings.port,
        live_reload=coordinator is not None,
        auth=settings.auth_enabled,
    )

    if coordinator is not None:
        await coordinator.start()

    try:
        yield
    finally:
        if coordinator is not None:
            coordinator.cleanup()
        logger.info("server_shutdown")


def create_app(
    settings: Settings | None = None,
    coordinator: ReloadCoordinator | None = None,
    oauth_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Factory function to create the configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        coordinator: Live-reload coordinator to use when ``settings.watch``
            is enabled. Built from settings if None.
        oauth_client: HTTP client for the OAuth code exchange.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    if settings.watch and coordinator is None:
        coordinator = ReloadCoordinator(
            debounce_ms=settings.watch_debounce,
            stability_ms=settings.watch_stability_ms,
            poll_interval_ms=settings.watch_poll_interval_ms,
            use_polling=settings.watch_use_polling,
            queue_size=settings.watch_queue_size,
        )

    app = FastAPI(
        title="mdserve",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.reload_coordinator = coordinator if settings.watch else None

    if settings.verbose:
        app.add_middleware(RequestLoggingMiddleware)

    auth_config = settings.auth_config if settings.auth_enabled else None
    if auth_config is not None:
        app.add_middleware(SessionAuthMiddleware, verbose=settings.verbose)
        app.add_middleware(
            SessionMiddleware,
            secret_key=auth_config.session_secret,
            session_cookie="mdserve.sid",
            max_age=auth_config.session_max_age // 1000,
            same_site="lax",
        )
        app.include_router(create_auth_router(auth_config, oauth_client))

    app.include_router(health.router, prefix="/api")
    app.include_router(reload.router, prefix="/api")
    app.include_router(pages.router)

    return app
