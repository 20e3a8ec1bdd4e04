from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from rich.console import Console

from specstore.cli import CLIContext, create_app


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run commands from an empty project directory with a clean environment."""
    for key in ("SPECSTORE_ROOT", "SPECSTORE_DEBUG", "SPECSTORE_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    CLIContext.reset()


@pytest.fixture
def specstore_cli(console: Console, project_root: Path) -> Callable[..., None]:
    """Create CLI app for testing.

    Returns a callable that runs the CLI through its global options and
    suppresses SystemExit. Use specstore_cli_with_exit_code when you need
    to check the exit code.
    """

    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> None:
        """Run CLI app and suppress SystemExit from cyclopts."""

        try:
            app.meta(["--project-root", str(project_root), *args])
        except SystemExit:
            pass

    return _run


@pytest.fixture
def specstore_cli_with_exit_code(console: Console, project_root: Path) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code."""

    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        """Run CLI app and return exit code (0 if no SystemExit)."""

        try:
            app.meta(["--project-root", str(project_root), *args])
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
