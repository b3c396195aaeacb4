"""OAuth configuration loading and validation."""
import json
import secrets
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_SESSION_MAX_AGE_MS = 86_400_000
MIN_SESSION_SECRET_LENGTH = 32


class AuthErrorCode:
    """Error codes shared by config loading and the OAuth flow."""

    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_MISSING = "CONFIG_MISSING"
    AUTH_DENIED = "AUTH_DENIED"
    AUTH_FAILED = "AUTH_FAILED"
    DOMAIN_BLOCKED = "DOMAIN_BLOCKED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    STATE_MISMATCH = "STATE_MISMATCH"


AUTH_ERROR_MESSAGES: dict[str, str] = {
    AuthErrorCode.AUTH_DENIED: "Sign-in was cancelled or denied.",
    AuthErrorCode.AUTH_FAILED: "Sign-in failed. Please try again.",
    AuthErrorCode.DOMAIN_BLOCKED: "Your account's domain is not allowed to access this server.",
    AuthErrorCode.SESSION_EXPIRED: "Your session has expired. Please sign in again.",
    AuthErrorCode.STATE_MISMATCH: "The sign-in request expired or was tampered with.",
}


class AuthConfigError(Exception):
    """Raised when auth configuration is missing or invalid."""

    def __init__(self, message: str, code: str, details: str | None = None) -> None:
        """Initialize auth config error.

        Args:
            message: Error description.
            code: One of the AuthErrorCode values.
            details: Underlying error text, if any.
        """
        super().__init__(message)
        self.code = code
        self.details = details


class AuthConfig(BaseModel):
    """Validated Google OAuth settings.

    Attributes:
        client_id: OAuth client id.
        client_secret: OAuth client secret.
        callback_url: Fixed redirect URI. Derived from the request if None.
        allowed_domains: Email domains allowed to sign in. All if None.
        session_secret: Cookie signing key. Generated if not supplied.
        session_max_age: Session lifetime in milliseconds.
    """

    client_id: str = Field(alias="clientId")
    client_secret: str = Field(alias="clientSecret")
    callback_url: str | None = Field(default=None, alias="callbackUrl")
    allowed_domains: list[str] | None = Field(default=None, alias="allowedDomains")
    session_secret: str = Field(default="", alias="sessionSecret", validate_default=True)
    session_max_age: int = Field(default=DEFAULT_SESSION_MAX_AGE_MS, alias="sessionMaxAge")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("client_id", "client_secret")
    @classmethod
    def _require_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("callback_url")
    @classmethod
    def _validate_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("is not a valid URL")
        return value

    @field_validator("allowed_domains")
    @classmethod
    def _validate_domains(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        if any(not domain.strip() for domain in value):
            raise ValueError("must contain only non-empty strings")
        return value

    @field_validator("session_secret", mode="before")
    @classmethod
    def _default_secret(cls, value: Any) -> Any:
        if value is None or value == "":
            return secrets.token_hex(32)
        return value

    @field_validator("session_secret")
    @classmethod
    def _validate_secret(cls, value: str) -> str:
        if len(value) < MIN_SESSION_SECRET_LENGTH:
            raise ValueError(f"must be at least {MIN_SESSION_SECRET_LENGTH} characters")
        return value

    @field_validator("session_max_age")
    @classmethod
    def _validate_max_age(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value


def validate_auth_config(raw: dict[str, Any]) -> AuthConfig:
    """Validate raw auth settings.

    Args:
        raw: Mapping using the camelCase config file keys.

    Returns:
        Validated AuthConfig.

    Raises:
        AuthConfigError: If a field is missing or invalid.
    """
    try:
        return AuthConfig.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "authConfig"
        raise AuthConfigError(
            f"Auth config field {field}: {first['msg']}",
            AuthErrorCode.CONFIG_INVALID,
            str(e),
        ) from e


def load_auth_config(config_path: str | Path, base_dir: Path) -> AuthConfig:
    """Load auth settings from a JSON file.

    Args:
        config_path: File path, absolute or relative to ``base_dir``.
        base_dir: Directory relative paths are resolved against.

    Returns:
        Validated AuthConfig.

    Raises:
        AuthConfigError: If the file is missing, unreadable or invalid.
    """
    path = Path(config_path)
    if not path.is_absolute():
        path = base_dir / path

    if not path.exists():
        raise AuthConfigError(
            f"Auth config file not found: {path}",
            AuthErrorCode.CONFIG_MISSING,
        )

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise AuthConfigError(
            f"Failed to read auth config file: {path}",
            AuthErrorCode.CONFIG_INVALID,
            str(e),
        ) from e
    except json.JSONDecodeError as e:
        raise AuthConfigError(
            "Auth config file is not valid JSON",
            AuthErrorCode.CONFIG_INVALID,
            str(e),
        ) from e

    if not isinstance(raw, dict):
        raise AuthConfigError(
            "Auth config file must contain a JSON object",
            AuthErrorCode.CONFIG_INVALID,
        )

    return validate_auth_config(raw)


def is_allowed_domain(email: str, allowed_domains: list[str] | None) -> bool:
    """Check whether an email's domain may sign in.

    Args:
        email: Email address.
        allowed_domains: Allowed domains, compared case-insensitively.
            Every domain is allowed when None or empty.

    Returns:
        True if the email is allowed.
    """
    if not allowed_domains:
        return True

    _, at, domain = email.rpartition("@")
    if not at:
        return False

    domain = domain.lower()
    return any(allowed.lower() == domain for allowed in allowed_domains)
