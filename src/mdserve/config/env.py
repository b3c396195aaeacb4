"""Environment variable expansion for config files."""
import os
import re
from typing import Any

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def expand_env_vars(value: str) -> tuple[str, list[str]]:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in a string.

    Undefined variables without a default are left as written and reported.

    Args:
        value: String that may contain references.

    Returns:
        Tuple of (expanded string, warnings).
    """
    warnings: list[str] = []

    def replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        env_value = os.environ.get(name)
        if env_value is not None:
            return env_value
        if default is not None:
            return default
        warnings.append(f"Environment variable {name} is not defined")
        return match.group(0)

    return ENV_VAR_PATTERN.sub(replace, value), warnings


def expand_env_vars_in_object(data: Any) -> tuple[Any, list[str]]:
    """Recursively expand references in every string of a parsed config.

    Args:
        data: Parsed config value (mapping, list or scalar).

    Returns:
        Tuple of (expanded copy, warnings).
    """
    warnings: list[str] = []

    def process(value: Any) -> Any:
        if isinstance(value, str):
            expanded, found = expand_env_vars(value)
            warnings.extend(found)
            return expanded
        if isinstance(value, list):
            return [process(item) for item in value]
        if isinstance(value, dict):
            return {key: process(item) for key, item in value.items()}
        return value

    return process(data), warnings
