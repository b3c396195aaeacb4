"""Session gate that redirects anonymous requests to sign-in."""

import time
from collections.abc import Awaitable, Callable
from urllib.parse import quote

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

logger = structlog.get_logger()

BYPASS_PREFIXES: tuple[str, ...] = (
    "/__auth/",
    "/__logout",
    "/api/live-reload",
    "/api/health/",
)


def should_bypass_auth(path: str) -> bool:
    """Check if a route is reachable without a session.

    The live-reload stream is exempt so that reconnect loops in open tabs
    keep working after a session expires.

    Args:
        path: Request URL path.

    Returns:
        True if the path skips authentication.
    """
    return any(path.startswith(prefix) for prefix in BYPASS_PREFIXES)


def is_session_valid(user: dict[str, object] | None) -> bool:
    """Whether a session user exists and has not expired."""
    if not user:
        return False
    expires_at = user.get("expires_at")
    return isinstance(expires_at, (int, float)) and time.time() * 1000 < expires_at


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Middleware that requires a signed-in session for protected routes.

    Must be installed inside Starlette's SessionMiddleware so that
    ``request.session`` is available.
    """

    def __init__(
        self,
        app: Callable[..., Awaitable[Response]],
        verbose: bool = False,
    ) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application.
            verbose: Add an ``X-Auth-User`` header to authenticated responses.
        """
        super().__init__(app)  # type: ignore[arg-type]
        self._verbose = verbose

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Redirect to sign-in unless the session is valid or the route is public.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response, or a redirect to ``/__auth/login``.
        """
        if should_bypass_auth(request.url.path):
            return await call_next(request)

        user = request.session.get("user")
        if not is_session_valid(user):
            if user:
                logger.info("auth_session_expired", email=user.get("email"))
                request.session.pop("user", None)

            target = request.url.path
            if request.url.query:
                target += "?" + request.url.query
            return RedirectResponse(
                f"/__auth/login?return={quote(target, safe='')}",
                status_code=302,
            )

        response = await call_next(request)
        if self._verbose:
            response.headers["X-Auth-User"] = str(user.get("email", ""))
        return response
