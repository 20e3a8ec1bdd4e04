import os
import sys
from pathlib import Path
from typing import Any

from specstore.exceptions import ConfigError

from ._models import StoreConfig


def safe_load_config(
    *,
    config_path: Path | None = None,
    project_root: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> tuple[StoreConfig, str | None]:
    """Load configuration with error handling.

    Attempts to load configuration and handles errors based on the
    SPECSTORE_STRICT_CONFIG environment variable:
    - If unset or "0": warn to stderr and return the default config
    - If "1": fail fast with sys.exit(1)

    When config_path is provided, the file must exist (explicit user request).

    Args:
        config_path: Explicit path to config file (--config flag).
        project_root: Directory searched for ``specstore.toml``.
        overrides: CLI argument overrides.

    Returns:
        Tuple of (StoreConfig, error_message). On success, error_message is
        None. On failure (non-strict mode), returns the default config with
        the error message.
    """
    strict_mode = os.environ.get("SPECSTORE_STRICT_CONFIG", "0") == "1"

    try:
        if config_path is not None:
            if not config_path.exists():
                print(f"Error: Config file not found: {config_path}", file=sys.stderr)  # noqa: T201
                sys.exit(1)
            return StoreConfig.from_file(config_path, overrides=overrides), None

        config = StoreConfig.load(project_root=project_root, overrides=overrides)
    except (ConfigError, OSError) as e:
        error_msg = str(e)
        if strict_mode:
            print(f"Error: {error_msg}", file=sys.stderr)  # noqa: T201
            sys.exit(1)
        print(f"Warning: Failed to load config: {error_msg}", file=sys.stderr)  # noqa: T201
        return StoreConfig(), error_msg
    else:
        return config, None
