"""Server settings loaded from environment variables and config files."""
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdserve.auth.config import AuthConfig, validate_auth_config


class Settings(BaseSettings):
    """Server configuration.

    Values come from keyword arguments (merged CLI and config file options)
    and fall back to ``MDSERVE_``-prefixed environment variables.

    Attributes:
        directory: Directory to serve.
        host: Bind address.
        port: Port number.
        verbose: Enable debug logging and per-request logs.
        watch: Enable live reload.
        watch_debounce: Debounce delay for change notifications in ms.
        watch_stability_ms: How long a file must be unchanged before a
            change is reported.
        watch_poll_interval_ms: Stability check and polling interval.
        watch_use_polling: Use the polling observer instead of native events.
        watch_queue_size: Capacity of the raw filesystem event queue.
        sse_ping_interval: Seconds between keep-alive comments on streams.
        auth_provider: Sign-in provider, or None for open access.
        auth_config: OAuth settings, required when auth_provider is set.
        shutdown_timeout: Seconds to wait for graceful shutdown.
    """

    model_config = SettingsConfigDict(
        env_prefix="MDSERVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    directory: Path = Path(".")
    host: str = "127.0.0.1"
    port: int = 3000
    verbose: bool = False

    watch: bool = False
    watch_debounce: int = Field(default=500, ge=0)
    watch_stability_ms: int = Field(default=100, ge=0)
    watch_poll_interval_ms: int = Field(default=100, ge=1)
    watch_use_polling: bool = False
    watch_queue_size: int = Field(default=1000, ge=1)
    sse_ping_interval: float = 15.0

    auth_provider: Literal["GOOGLE"] | None = None
    auth_config: AuthConfig | None = None

    shutdown_timeout: float = 10.0

    @computed_field
    @property
    def root(self) -> Path:
        """Absolute served root directory."""
        return self.directory.resolve()

    @property
    def auth_enabled(self) -> bool:
        """Whether requests must carry a signed-in session."""
        return self.auth_provider is not None and self.auth_config is not None


def settings_from_config(config: dict[str, Any], **overrides: Any) -> Settings:
    """Build Settings from a merged camelCase config mapping.

    Args:
        config: Merged config using the file keys.
        overrides: Extra Settings fields (for example ``host``).

    Returns:
        Settings instance.

    Raises:
        AuthConfigError: If auth is enabled with invalid OAuth settings.
    """
    values: dict[str, Any] = {}
    mapping = {
        "directory": "directory",
        "port": "port",
        "verbose": "verbose",
        "watch": "watch",
        "watchDebounce": "watch_debounce",
        "authProvider": "auth_provider",
    }
    for key, field in mapping.items():
        if key in config:
            values[field] = config[key]

    auth = config.get("authConfig")
    if values.get("auth_provider") is not None and isinstance(auth, dict):
        values["auth_config"] = validate_auth_config(auth)

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
