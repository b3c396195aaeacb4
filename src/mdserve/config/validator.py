"""Validation of raw config file contents."""
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from mdserve.auth.config import MIN_SESSION_SECRET_LENGTH

KNOWN_FIELDS: frozenset[str] = frozenset({
    "directory",
    "port",
    "verbose",
    "watch",
    "watchDebounce",
    "authProvider",
    "authConfig",
})

KNOWN_AUTH_FIELDS: frozenset[str] = frozenset({
    "clientId",
    "clientSecret",
    "sessionSecret",
    "sessionMaxAge",
    "allowedEmails",
    "allowedDomains",
    "callbackUrl",
})

AUTH_PROVIDERS: frozenset[str] = frozenset({"GOOGLE"})


class ValidationIssue(BaseModel):
    """A config problem that prevents the server from starting.

    Attributes:
        field: Dotted config key.
        message: What is wrong.
        line: 1-based line in the config file, when known.
        hint: How to fix it.
    """

    field: str
    message: str
    line: int | None = None
    hint: str | None = None


class ValidationWarning(BaseModel):
    """A config oddity that does not prevent startup."""

    field: str
    message: str


class ValidationResult(BaseModel):
    """Outcome of validating a config."""

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def validate_port(port: Any) -> ValidationIssue | None:
    """Check that a port is an integer between 1 and 65535."""
    if isinstance(port, bool) or not isinstance(port, (int, float)):
        return ValidationIssue(
            field="port",
            message=f"Invalid type: expected number, got {_type_name(port)}",
            hint='Use a number like 3000, not "3000"',
        )
    if isinstance(port, float) and not port.is_integer():
        return ValidationIssue(
            field="port",
            message="Port must be an integer",
            hint="Use a whole number like 3000",
        )
    if port < 1 or port > 65535:
        return ValidationIssue(
            field="port",
            message=f"Port {port} is out of range",
            hint="Use a port between 1 and 65535",
        )
    return None


def validate_directory(directory: Any) -> ValidationIssue | None:
    """Check that a directory is a non-empty string."""
    if not isinstance(directory, str):
        return ValidationIssue(
            field="directory",
            message=f"Invalid type: expected string, got {_type_name(directory)}",
            hint='Use a path like "." or "./docs"',
        )
    if not directory.strip():
        return ValidationIssue(
            field="directory",
            message="Directory cannot be empty",
            hint='Use "." for the current directory',
        )
    return None


def validate_boolean(field: str, value: Any) -> ValidationIssue | None:
    """Check that a flag is a boolean."""
    if not isinstance(value, bool):
        return ValidationIssue(
            field=field,
            message=f"Invalid type: expected boolean, got {_type_name(value)}",
            hint="Use true or false without quotes",
        )
    return None


def validate_watch_debounce(value: Any) -> ValidationIssue | None:
    """Check that the debounce delay is a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        return ValidationIssue(
            field="watchDebounce",
            message=f"Invalid type: expected integer, got {_type_name(value)}",
            hint="Use milliseconds like 500",
        )
    if value < 0:
        return ValidationIssue(
            field="watchDebounce",
            message="Watch debounce must be non-negative",
            hint="Use 0 to notify on every settled change",
        )
    return None


def _validate_string_list(field: str, value: Any) -> ValidationIssue | None:
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        return ValidationIssue(
            field=field,
            message="Expected an array of non-empty strings",
            hint='Use a list like ["example.com"]',
        )
    return None


def _validate_auth_config(
    auth: Any,
    provider: Any,
    errors: list[ValidationIssue],
    warnings: list[ValidationWarning],
) -> None:
    if auth is None:
        if provider is not None:
            errors.append(ValidationIssue(
                field="authConfig",
                message="authConfig is required when authProvider is set",
                hint="Add clientId and clientSecret under authConfig",
            ))
        return

    if not isinstance(auth, dict):
        errors.append(ValidationIssue(
            field="authConfig",
            message=f"Invalid type: expected object, got {_type_name(auth)}",
        ))
        return

    if provider is None:
        warnings.append(ValidationWarning(
            field="authConfig",
            message="authConfig is ignored because authProvider is not set",
        ))

    for key in ("clientId", "clientSecret"):
        value = auth.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(ValidationIssue(
                field=f"authConfig.{key}",
                message=f"Missing required field: {key}",
                hint="Copy it from your Google Cloud OAuth client",
            ))

    for key in ("allowedEmails", "allowedDomains"):
        if key in auth and auth[key] is not None:
            issue = _validate_string_list(f"authConfig.{key}", auth[key])
            if issue:
                errors.append(issue)

    callback = auth.get("callbackUrl")
    if callback is not None:
        parsed = urlparse(callback) if isinstance(callback, str) else None
        if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(ValidationIssue(
                field="authConfig.callbackUrl",
                message="callbackUrl is not a valid URL",
                hint="Use a full URL like https://docs.example.com/__auth/callback",
            ))

    secret = auth.get("sessionSecret")
    if isinstance(secret, str) and secret and len(secret) < MIN_SESSION_SECRET_LENGTH:
        warnings.append(ValidationWarning(
            field="authConfig.sessionSecret",
            message=f"sessionSecret is shorter than {MIN_SESSION_SECRET_LENGTH} characters",
        ))

    for key in auth:
        if key not in KNOWN_AUTH_FIELDS:
            warnings.append(ValidationWarning(
                field=f"authConfig.{key}",
                message=f"Unknown field: {key}",
            ))


def validate_config(config: dict[str, Any]) -> ValidationResult:
    """Validate a parsed config file.

    Args:
        config: Config mapping using the camelCase file keys.

    Returns:
        Validation result with errors and warnings.
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationWarning] = []

    checks = {
        "port": validate_port,
        "directory": validate_directory,
        "watchDebounce": validate_watch_debounce,
    }
    for key, check in checks.items():
        if key in config:
            issue = check(config[key])
            if issue:
                errors.append(issue)

    for key in ("verbose", "watch"):
        if key in config:
            issue = validate_boolean(key, config[key])
            if issue:
                errors.append(issue)

    provider = config.get("authProvider")
    if provider is not None and provider not in AUTH_PROVIDERS:
        errors.append(ValidationIssue(
            field="authProvider",
            message=f"Unknown auth provider: {provider}",
            hint="Use GOOGLE or null",
        ))

    _validate_auth_config(config.get("authConfig"), provider, errors, warnings)

    for key in config:
        if key not in KNOWN_FIELDS:
            warnings.append(ValidationWarning(field=key, message=f"Unknown field: {key}"))

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
