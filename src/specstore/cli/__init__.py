"""Command-line interface for specstore."""

from ._app import create_app, main
from ._context import CLIContext, OutputFormat
from ._shared import ExitCode, exit_code_for_exception

__all__ = [
    "CLIContext",
    "ExitCode",
    "OutputFormat",
    "create_app",
    "exit_code_for_exception",
    "main",
]
