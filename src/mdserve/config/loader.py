"""Config file loading for JSON and YAML formats."""
import json
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import BaseModel, Field

from mdserve.config.env import expand_env_vars_in_object
from mdserve.config.validator import ValidationResult, validate_config

logger = structlog.get_logger()

ConfigFormat = Literal["json", "yaml"]

DEFAULT_CONFIG_NAMES: tuple[str, ...] = (
    "mdserve.yaml",
    "mdserve.yml",
    "mdserve.json",
)


class ConfigFileError(Exception):
    """Raised when a config file cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        path: str,
        line: int | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize config file error.

        Args:
            message: Error description.
            path: Config file path.
            line: 1-based line of a parse error, when known.
            hint: How to fix it.
        """
        super().__init__(message)
        self.path = path
        self.line = line
        self.hint = hint


class LoadedConfig(BaseModel):
    """A parsed, expanded and validated config file.

    Attributes:
        path: Config file path.
        format: Detected format.
        config: Parsed mapping after environment expansion.
        validation: Validation outcome.
        env_warnings: Undefined environment variable references.
    """

    path: str
    format: ConfigFormat
    config: dict[str, Any]
    validation: ValidationResult
    env_warnings: list[str] = Field(default_factory=list)


def detect_config_format(path: Path) -> ConfigFormat:
    """Detect config format from the file extension.

    Unknown extensions are treated as JSON.

    Args:
        path: Config file path.

    Returns:
        Detected format.
    """
    if path.suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return "json"


def find_default_config(directory: Path) -> Path | None:
    """Find a config file with a default name in a directory."""
    for name in DEFAULT_CONFIG_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def _parse_json(content: str, path: Path) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigFileError(
            f"Failed to parse config file: {path} ({e.msg})",
            str(path),
            line=e.lineno,
            hint="Check for trailing commas and unquoted keys",
        ) from e


def _parse_yaml(content: str, path: Path) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ConfigFileError(
            f"Failed to parse config file: {path}",
            str(path),
            line=mark.line + 1 if mark is not None else None,
            hint="Check indentation uses consistent spaces (not tabs)",
        ) from e


def load_config_file(path: Path) -> LoadedConfig:
    """Load, expand and validate a config file.

    Args:
        path: Config file path.

    Returns:
        Loaded config. Check ``validation.valid`` before using it.

    Raises:
        ConfigFileError: If the file is missing, unreadable or not a mapping.
    """
    if not path.exists():
        raise ConfigFileError(
            f"Config file not found: {path}",
            str(path),
            hint="Check the file path or run 'mdserve init' to create one",
        )

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(
            f"Failed to read config file: {e}",
            str(path),
            hint="Check file permissions",
        ) from e

    fmt = detect_config_format(path)
    parsed = _parse_yaml(content, path) if fmt == "yaml" else _parse_json(content, path)

    if not isinstance(parsed, dict):
        raise ConfigFileError(
            "Config file must contain an object at root level",
            str(path),
            hint="Start the file with key: value pairs",
        )

    expanded, env_warnings = expand_env_vars_in_object(parsed)
    validation = validate_config(expanded)

    logger.debug(
        "config_file_loaded",
        path=str(path),
        format=fmt,
        valid=validation.valid,
        env_warnings=len(env_warnings),
    )

    return LoadedConfig(
        path=str(path),
        format=fmt,
        config=expanded,
        validation=validation,
        env_warnings=env_warnings,
    )
