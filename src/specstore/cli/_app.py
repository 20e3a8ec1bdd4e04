"""The command-line interface for specstore."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from specstore.config import safe_load_config
from specstore.utils import create_store_logger

from ._commands import register_commands
from ._context import CLIContext

APP_NAME = "specstore"
APP_HELP = "Manage specification entities stored as YAML files."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the CLI application.

    Args:
        console: Console for regular output.
        error_console: Console for parse and usage errors.
        exit_on_error: Exit on parse errors instead of raising.

    Returns:
        The configured cyclopts App. Call ``app.meta`` to apply the global
        options before dispatching to a command.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name=APP_NAME,
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Enable debug logging")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        project_root: Annotated[
            Path | None, Parameter(name="--project-root", help="Path to project root")
        ] = None,
        root: Annotated[
            Path | None, Parameter(name="--root", help="Specs folder (overrides config)")
        ] = None,
    ) -> None:
        """Launch specstore with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Enable debug logging.
            config: Explicit path to config file.
            project_root: Path to project root directory.
            root: Specs folder, relative to the project root.
        """
        # Build CLI overrides from flags
        overrides: dict[str, object] = {}
        if verbose:
            overrides["logging"] = {"level": "debug"}
        if root is not None:
            overrides["root"] = str(root)

        loaded_config, config_error = safe_load_config(
            config_path=config,
            project_root=project_root,
            overrides=overrides or None,
        )

        logger = create_store_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # type: ignore[arg-type]
            log_file=loaded_config.logging.file,
            max_bytes=loaded_config.logging.max_bytes,
            backup_count=loaded_config.logging.backup_count,
            command=tokens[0] if tokens else "",
        )

        ctx = CLIContext(
            config=loaded_config,
            verbose=verbose,
            project_root=project_root,
            config_error=config_error,
            logger=logger,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `specstore` CLI."""
    app = create_app()
    app.meta()
