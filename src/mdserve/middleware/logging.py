"""Per-request access logging for verbose mode."""
import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

QUIET_PREFIXES: tuple[str, ...] = (
    "/api/health/",
    "/api/live-reload",
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each page request with its status and timing.

    A short request id is bound to structlog's context variables so that
    log lines emitted while rendering a page can be correlated. Health
    probes and live-reload streams are not logged here; streams log their
    own open and close events.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Time the request and log the outcome.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response from handler.
        """
        path = request.url.path
        if path.startswith(QUIET_PREFIXES):
            return await call_next(request)

        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                "http_request",
                method=request.method,
                path=path,
                status=response.status_code,
                duration_ms=elapsed_ms,
            )

        return response
