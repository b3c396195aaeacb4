"""Merging of defaults, config file values and CLI options."""
from typing import Any

CONFIG_DEFAULTS: dict[str, Any] = {
    "directory": ".",
    "port": 3000,
    "verbose": False,
    "watch": False,
    "watchDebounce": 500,
    "authProvider": None,
}


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge configs, later values overriding earlier ones.

    None values never override. ``authConfig`` mappings are merged key by key.

    Args:
        configs: Config mappings in increasing precedence.

    Returns:
        Merged config.
    """
    merged: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is None and key != "authProvider":
                continue
            if key == "authConfig" and isinstance(value, dict):
                merged["authConfig"] = {**merged.get("authConfig", {}), **value}
            else:
                merged[key] = value
    return merged


def cli_options_to_config(
    directory: str | None = None,
    port: int | None = None,
    verbose: bool | None = None,
    watch: bool | None = None,
    watch_debounce: int | None = None,
    auth: bool | None = None,
) -> dict[str, Any]:
    """Convert explicitly given CLI options to config keys.

    Args:
        directory: Directory to serve.
        port: Port to listen on.
        verbose: Verbose logging flag.
        watch: Live reload flag.
        watch_debounce: Debounce delay in milliseconds.
        auth: Enable (True) or disable (False) Google sign-in.

    Returns:
        Config mapping containing only the options that were given.
    """
    config: dict[str, Any] = {}
    if directory is not None:
        config["directory"] = directory
    if port is not None:
        config["port"] = port
    if verbose is not None:
        config["verbose"] = verbose
    if watch is not None:
        config["watch"] = watch
    if watch_debounce is not None:
        config["watchDebounce"] = watch_debounce
    if auth is True:
        config["authProvider"] = "GOOGLE"
    elif auth is False:
        config["authProvider"] = None
    return config
