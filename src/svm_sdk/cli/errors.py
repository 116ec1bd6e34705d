"""
Unified CLI Error Handling
==========================

Provides consistent error handling, exit codes and logging setup across all
CLI tools.
"""

import logging
import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    PROGRAM_ERROR = 1    # Assembly error, machine fault, or program did not halt
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def setup_logging(verbose: bool) -> None:
    """
    Configure logging based on verbosity.

    Log records always go to stderr so that stdout carries only tool output.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
        stream=sys.stderr,
        force=True,
    )


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Unified exception handler for all CLI tools.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Runtime")

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    from svm_sdk.errors import AssemblerError, SVMError

    if isinstance(error, AssemblerError):
        # Already formatted as "file:line:col: error: ..."
        click.echo(str(error), err=True)
        sys.exit(ExitCode.PROGRAM_ERROR)

    elif isinstance(error, SVMError):
        # Machine faults and load errors
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.PROGRAM_ERROR)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, FileNotFoundError):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, PermissionError):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        # Unexpected internal error
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)


def is_stdio(path) -> bool:
    """Check whether a path argument is '-' (stdin or stdout)."""
    return str(path) == "-"


def parse_address(text: str) -> int:
    """
    Parse an address option (hex with 0x or $ prefix, or decimal).

    Raises:
        click.BadParameter: If the text is not a valid 16-bit address
    """
    try:
        if text.lower().startswith("0x"):
            value = int(text, 16)
        elif text.startswith("$"):
            value = int(text[1:], 16)
        else:
            value = int(text)
    except ValueError:
        raise click.BadParameter(f"invalid address '{text}'") from None

    if not 0 <= value <= 0xFFFF:
        raise click.BadParameter("address must be 0-65535 (0x0000-0xFFFF)")
    return value
