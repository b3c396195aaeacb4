"""Configuration: settings, config files, validation and merging."""
from mdserve.config.env import expand_env_vars, expand_env_vars_in_object
from mdserve.config.loader import (
    ConfigFileError,
    LoadedConfig,
    detect_config_format,
    find_default_config,
    load_config_file,
)
from mdserve.config.merger import CONFIG_DEFAULTS, cli_options_to_config, merge_configs
from mdserve.config.settings import Settings, settings_from_config
from mdserve.config.validator import (
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
    validate_config,
)

__all__ = [
    "CONFIG_DEFAULTS",
    "ConfigFileError",
    "LoadedConfig",
    "Settings",
    "ValidationIssue",
    "ValidationResult",
    "ValidationWarning",
    "cli_options_to_config",
    "detect_config_format",
    "expand_env_vars",
    "expand_env_vars_in_object",
    "find_default_config",
    "load_config_file",
    "merge_configs",
    "settings_from_config",
]
