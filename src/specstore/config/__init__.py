"""Specstore configuration.

This module provides the public API for configuration management: loading
``specstore.toml``, applying ``SPECSTORE_*`` environment overrides, and
typed access to the result.

Example:
    >>> from specstore.config import StoreConfig
    >>> config = StoreConfig.load()
    >>> config.logging.level
    <LogLevel.WARNING: 'warning'>
"""

from specstore.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._load import safe_load_config
from ._loader import (
    ENV_PREFIX,
    copy_value,
    deep_merge,
    parse_env_value,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    CONFIG_FILE_NAME,
    LogFormat,
    LoggingConfig,
    LogLevel,
    StoreConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ENV_PREFIX",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "StoreConfig",
    "copy_value",
    "deep_merge",
    "parse_env_value",
    "parse_env_vars",
    "read_toml_file",
    "set_nested_key",
    "safe_load_config",
]
