# pyright: reportExplicitAny=false, reportAny=false
"""Configuration models.

This module provides the StoreConfig Pydantic model and its logging section.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Final, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from specstore.exceptions import ConfigValidationError

from ._loader import deep_merge, parse_env_vars, read_toml_file

CONFIG_FILE_NAME: Final = "specstore.toml"


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty writes to stderr).
        max_bytes: Rotate the log file once it reaches this size.
        backup_count: Number of rotated log files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""
    max_bytes: int | None = Field(default=None, gt=0)
    backup_count: int | None = Field(default=None, ge=0)


class StoreConfig(BaseModel):
    """Store configuration.

    Attributes:
        root: The specs folder, relative to the project root unless absolute.
        metadata_file: Name of the counter document inside ``root``.
        auto_migrate: Seed the counter from existing files before commands
            that allocate numbers.
        logging: Logging section.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: Path = Field(default=Path("specs"), description="Specs folder")
    metadata_file: str = Field(default="specs.json", min_length=1)
    auto_migrate: bool = True
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str | None = None) -> Self:
        """Create configuration from a dictionary.

        Raises:
            ConfigValidationError: If a value is invalid. The first failing
                key is reported.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            msg = f"Invalid configuration value for {key}: {first['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=first.get("input"),
                expected=first["msg"],
                source=source,
            ) from e

    @classmethod
    def from_file(cls, path: Path, *, overrides: dict[str, Any] | None = None) -> Self:
        """Load configuration from a specific TOML file.

        Environment variables are not consulted; ``overrides`` are applied
        on top of the file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        if overrides:
            data = deep_merge(data, overrides)
        return cls.from_dict(data, source=str(path))

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
        overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged in precedence order: defaults, then
        ``specstore.toml`` in the project root (if present), then
        ``SPECSTORE_*`` environment variables, then ``overrides``.

        Args:
            project_root: Directory searched for ``specstore.toml``.
                Defaults to the current directory.
            include_env: Include environment variables as a source.
            overrides: Highest-precedence values, such as CLI flags.

        Raises:
            ConfigLoadError: If the config file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        root = project_root if project_root is not None else Path.cwd()
        config_path = root / CONFIG_FILE_NAME

        merged: dict[str, Any] = {}
        if config_path.is_file():
            merged = deep_merge(merged, read_toml_file(config_path))
        if include_env:
            merged = deep_merge(merged, parse_env_vars())
        if overrides:
            merged = deep_merge(merged, overrides)

        return cls.from_dict(merged, source=str(config_path))
