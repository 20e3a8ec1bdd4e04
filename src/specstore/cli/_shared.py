# pyright: reportExplicitAny=false, reportAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes and the exception to exit code mapping
- Generic output formatters (JSON, YAML, table)
- Console utilities for error handling
"""

import sys
from enum import IntEnum
from typing import Any, Never

import orjson
import yaml
from pytablewriter import MarkdownTableWriter
from rich.console import Console
from rich.markup import escape

from specstore.exceptions import (
    ConfigError,
    DraftNotFoundError,
    EntityNotFoundError,
    EntityValidationError,
    InvalidEntityIdError,
    StoreError,
    UnknownEntityTypeError,
)

# Type alias for formattable data - uses Any to match library signatures
type FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "confirm_destructive",
    "exit_code_for_exception",
    "exit_with_error",
    "format_json",
    "format_table",
    "format_yaml",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Standard exit codes for specstore CLI commands."""

    SUCCESS = 0
    NOT_FOUND = 1
    VALIDATION_ERROR = 2
    CANCELLED = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


def exit_code_for_exception(exc: BaseException) -> ExitCode:
    """Map an exception to the exit code reported for it."""
    if isinstance(exc, (EntityNotFoundError, DraftNotFoundError)):
        return ExitCode.NOT_FOUND

    if isinstance(
        exc,
        (
            EntityValidationError,
            InvalidEntityIdError,
            UnknownEntityTypeError,
            ConfigError,
            ValueError,
        ),
    ):
        return ExitCode.VALIDATION_ERROR

    if isinstance(exc, KeyboardInterrupt):
        return ExitCode.CANCELLED

    if isinstance(exc, (StoreError, OSError)):
        return ExitCode.IO_ERROR

    return ExitCode.INTERNAL_ERROR


def format_json(data: FormattableData | list[FormattableData], *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary or list of dictionaries to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def format_yaml(data: FormattableData | list[FormattableData]) -> str:
    """Format data as YAML."""
    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format data as a Markdown table.

    Args:
        headers: Column headers for the table.
        rows: List of rows, where each row is a list of cell values.

    Returns:
        Markdown table string representation.
    """
    writer = MarkdownTableWriter(
        headers=headers,
        value_matrix=rows,
        margin=1,
    )
    return writer.dumps()


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    return Console(stderr=True)


def confirm_destructive(message: str, *, force: bool, console: Console) -> bool:
    """Prompt for confirmation on destructive operations.

    Skips the prompt and returns True if force=True. Non-interactive
    sessions without force are refused.

    Returns:
        True if the operation should proceed, False otherwise.
    """
    if force:
        return True

    if not sys.stdin.isatty():
        return False

    try:
        console.print(f"[yellow]{message}[/yellow]")
        response = console.input("[bold]Confirm (y/N): [/bold]")
        return response.lower() in ("y", "yes")
    except (EOFError, KeyboardInterrupt):
        return False


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)
    raise SystemExit(code)
