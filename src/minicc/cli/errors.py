"""
CLI Error Handling
==================

Maps exceptions to messages and exit codes for the mcc command.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from minicc.errors import InternalCompilerError, MiniCCError


class ExitCode(IntEnum):
    """Standard exit codes for the CLI."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Syntax or code generation errors
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Compiler bug or unexpected failure


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    if isinstance(error, InternalCompilerError):
        click.echo(str(error), err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)

    elif isinstance(error, MiniCCError):
        # Compiler errors already carry their own "error:" prefix
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, (FileNotFoundError, PermissionError, click.BadParameter)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
