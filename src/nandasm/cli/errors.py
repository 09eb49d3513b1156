"""
CLI Error Handling
==================

Provides consistent error reporting and exit codes for the nandasm commands.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn, Optional

import click

from nandasm.errors import (
    AssemblyFailed,
    ConfigError,
    InternalConsistencyError,
    NandAsmError,
)


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Assembly errors, or source that needs formatting
    INVALID_ARGS = 2     # Invalid arguments, missing files or bad configuration
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None,
    source: Optional[str] = None,
    filename: str = "<input>",
) -> NoReturn:
    """
    Unified exception handler for the CLI commands.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Assembly")
        source: Source text, used to show diagnostics in context
        filename: Name of the source file in diagnostics

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    if isinstance(error, AssemblyFailed):
        # Diagnostics carry their own "error:" prefix and location
        if source is not None:
            click.echo(error.render(source, filename), err=True)
        else:
            click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, ConfigError):
        # The instruction set could not be built, nothing was assembled
        click.echo(f"Configuration error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, NandAsmError) and not isinstance(error, InternalConsistencyError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        # Invalid command-line arguments
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(
        error, (FileNotFoundError, PermissionError, IsADirectoryError, UnicodeDecodeError)
    ):
        # Missing or unreadable files, including files that are not UTF-8
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        # Unexpected internal error, including assembler invariant failures
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
