"""Google OAuth sign-in, callback, error and logout routes."""

import time
from urllib.parse import urlencode

import httpx
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from mdserve.auth.config import (
    AUTH_ERROR_MESSAGES,
    AuthConfig,
    AuthErrorCode,
    is_allowed_domain,
)
from mdserve.auth.pkce import (
    generate_code_challenge,
    generate_code_verifier,
    generate_state_token,
)
from mdserve.templating import render_template

logger = structlog.get_logger()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

OAUTH_STATE_TIMEOUT_MS = 5 * 60 * 1000


class OAuthExchangeError(Exception):
    """Raised when the authorization code cannot be turned into a user."""


def _now_ms() -> int:
    return int(time.time() * 1000)


def safe_return_url(value: str | None) -> str:
    """Restrict a post-login redirect to a local absolute path.

    Args:
        value: Requested return URL.

    Returns:
        The value if it is a local path, otherwise ``/``.
    """
    if not value or not value.startswith("/") or value.startswith("//"):
        return "/"
    return value


def callback_url_for(request: Request, config: AuthConfig) -> str:
    """Redirect URI registered with Google for this request.

    Uses the configured callback URL when set, otherwise derives it from the
    request host and the ``X-Forwarded-Proto`` header.
    """
    if config.callback_url:
        return config.callback_url
    proto = request.headers.get("x-forwarded-proto", request.url.scheme)
    host = request.headers.get("host", "localhost:3000")
    return f"{proto}://{host}/__auth/callback"


async def fetch_google_user(
    client: httpx.AsyncClient,
    config: AuthConfig,
    code: str,
    code_verifier: str,
    redirect_uri: str,
) -> dict[str, object]:
    """Exchange an authorization code and fetch the signed-in user's profile.

    Args:
        client: HTTP client used for both requests.
        config: OAuth settings.
        code: Authorization code from the callback.
        code_verifier: PKCE verifier stored at login.
        redirect_uri: Redirect URI used at login.

    Returns:
        Userinfo claims (``email``, ``name``, ``picture``...).

    Raises:
        OAuthExchangeError: If Google rejects the exchange or returns no email.
    """
    try:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": config.client_id,
                "client_secret": config.client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
                "code_verifier": code_verifier,
            },
        )
        token_response.raise_for_status()
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise OAuthExchangeError("No access token in token response")

        userinfo_response = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        userinfo_response.raise_for_status()
        userinfo = userinfo_response.json()
    except httpx.HTTPError as e:
        raise OAuthExchangeError(str(e)) from e

    if not isinstance(userinfo, dict) or not userinfo.get("email"):
        raise OAuthExchangeError("No email in userinfo response")
    return userinfo


def create_auth_router(
    config: AuthConfig,
    http_client: httpx.AsyncClient | None = None,
) -> APIRouter:
    """Build the sign-in routes.

    Args:
        config: OAuth settings.
        http_client: Client for talking to Google. A new one is opened per
            callback if None.

    Returns:
        Router exposing ``/__auth/*`` and ``/__logout``.
    """
    router = APIRouter(tags=["auth"])

    def error_redirect(code: str) -> RedirectResponse:
        return RedirectResponse(f"/__auth/error?code={code}", status_code=302)

    @router.get("/__auth/login")
    async def login(request: Request) -> RedirectResponse:
        """Start the OAuth flow and redirect to Google."""
        return_url = safe_return_url(request.query_params.get("return"))
        verifier = generate_code_verifier()
        state = generate_state_token()

        request.session["oauth"] = {
            "state": state,
            "code_verifier": verifier,
            "return_url": return_url,
            "created_at": _now_ms(),
        }

        params = {
            "client_id": config.client_id,
            "redirect_uri": callback_url_for(request, config),
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "offline",
            "state": state,
            "code_challenge": generate_code_challenge(verifier),
            "code_challenge_method": "S256",
        }
        logger.info("auth_login_redirect", return_url=return_url)
        return RedirectResponse(f"{GOOGLE_AUTH_URL}?{urlencode(params)}", status_code=302)

    @router.get("/__auth/callback")
    async def callback(request: Request) -> RedirectResponse:
        """Complete the OAuth flow and start a session."""
        params = request.query_params
        if params.get("error"):
            logger.info("auth_denied", error=params.get("error"))
            return error_redirect(AuthErrorCode.AUTH_DENIED)

        oauth = request.session.pop("oauth", None)
        if not oauth or oauth.get("state") != params.get("state"):
            logger.warning("auth_state_mismatch")
            return error_redirect(AuthErrorCode.STATE_MISMATCH)

        if _now_ms() - int(oauth.get("created_at", 0)) > OAUTH_STATE_TIMEOUT_MS:
            logger.info("auth_state_expired")
            return error_redirect(AuthErrorCode.STATE_MISMATCH)

        code = params.get("code")
        if not code:
            return error_redirect(AuthErrorCode.AUTH_FAILED)

        redirect_uri = callback_url_for(request, config)
        try:
            if http_client is not None:
                userinfo = await fetch_google_user(
                    http_client, config, code, oauth["code_verifier"], redirect_uri
                )
            else:
                async with httpx.AsyncClient(timeout=10.0) as client:
                    userinfo = await fetch_google_user(
                        client, config, code, oauth["code_verifier"], redirect_uri
                    )
        except OAuthExchangeError as e:
            logger.warning("auth_failed", error=str(e))
            return error_redirect(AuthErrorCode.AUTH_FAILED)

        email = str(userinfo["email"])
        if not is_allowed_domain(email, config.allowed_domains):
            logger.info("auth_domain_blocked", email=email)
            return error_redirect(AuthErrorCode.DOMAIN_BLOCKED)

        now = _now_ms()
        request.session["user"] = {
            "email": email,
            "name": userinfo.get("name"),
            "picture": userinfo.get("picture"),
            "authenticated_at": now,
            "expires_at": now + config.session_max_age,
        }
        logger.info("auth_user_authenticated", email=email)
        return RedirectResponse(oauth.get("return_url", "/"), status_code=302)

    @router.get("/__auth/error", response_class=HTMLResponse)
    async def auth_error(request: Request) -> HTMLResponse:
        """Explain why sign-in failed."""
        code = request.query_params.get("code", AuthErrorCode.AUTH_FAILED)
        if code not in AUTH_ERROR_MESSAGES:
            code = AuthErrorCode.AUTH_FAILED
        html = render_template(
            "auth_error.html",
            code=code,
            message=AUTH_ERROR_MESSAGES[code],
        )
        return HTMLResponse(html, status_code=403)

    @router.get("/__logout", response_class=HTMLResponse)
    async def logout(request: Request) -> HTMLResponse:
        """End the session."""
        user = request.session.get("user")
        request.session.clear()
        if user:
            logger.info("auth_user_logged_out", email=user.get("email"))
        return HTMLResponse(render_template("logout.html"))

    return router
