"""Optional Google sign-in gating all routes except the live-reload stream."""
from mdserve.auth.config import (
    AuthConfig,
    AuthConfigError,
    AuthErrorCode,
    is_allowed_domain,
    load_auth_config,
    validate_auth_config,
)
from mdserve.auth.middleware import SessionAuthMiddleware, is_session_valid, should_bypass_auth
from mdserve.auth.pkce import (
    generate_code_challenge,
    generate_code_verifier,
    generate_state_token,
)
from mdserve.auth.routes import create_auth_router

__all__ = [
    "AuthConfig",
    "AuthConfigError",
    "AuthErrorCode",
    "SessionAuthMiddleware",
    "create_auth_router",
    "generate_code_challenge",
    "generate_code_verifier",
    "generate_state_token",
    "is_allowed_domain",
    "is_session_valid",
    "load_auth_config",
    "should_bypass_auth",
    "validate_auth_config",
]
