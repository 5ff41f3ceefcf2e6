"""Error handling for CLI commands: friendly messages and distinct exit codes."""

import sys
import traceback
from typing import Optional

import click
from pydantic import ValidationError

from invoicing.cli.utils.formatters import format_error, format_warning
from invoicing.errors import (
    InvalidStateError,
    InvoicingError,
    NotFoundError,
    ValidationFailedError,
)
from invoicing.services.error_classifier import (
    AuthenticationError,
    GoogleServiceError,
    PermissionDeniedError,
    QuotaExceededError,
    ResourceNotFoundError,
)


class CLIError(Exception):
    """Base exception for CLI errors with user-friendly messages."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(message)


class ConfigurationError(CLIError):
    pass


def _report(title: str, hint: Optional[str] = None) -> None:
    click.echo(format_error(title))
    if hint:
        click.echo(format_warning(f"Hint: {hint}"))


def handle_cli_error(error: Exception, debug: bool = False) -> int:
    """
    Print a user-facing message for ``error``.

    Returns:
        Exit code: 1 configuration, 2 validation, 3 not found, 4 invalid
        state, 5-9 Google API failures, 130 cancelled, 255 unexpected
    """
    if isinstance(error, ConfigurationError):
        _report(f"Configuration Error: {error.message}", error.recovery_hint)
        return 1

    if isinstance(error, ValidationError):
        _report(f"Invalid configuration or data: {error.error_count()} error(s)")
        click.echo(str(error))
        return 1

    if isinstance(error, ValidationFailedError):
        _report(f"Validation Error: {error.message}")
        return 2

    if isinstance(error, NotFoundError):
        _report(error.message)
        return 3

    if isinstance(error, InvalidStateError):
        _report(error.message)
        return 4

    if isinstance(error, InvoicingError):
        _report(f"{error.code}: {error.message}")
        return 4

    if isinstance(error, AuthenticationError):
        _report(
            "Authentication Failed",
            "Check the service account credentials in your .env file",
        )
        return 5

    if isinstance(error, PermissionDeniedError):
        _report(
            "Permission Denied",
            "Share the spreadsheet and Drive folder with the service account",
        )
        return 6

    if isinstance(error, ResourceNotFoundError):
        _report("Resource Not Found", "Verify GOOGLE_SHEETS_SPREADSHEET_ID")
        return 7

    if isinstance(error, QuotaExceededError):
        _report("Rate Limit Exceeded", "Wait a few minutes before retrying")
        return 8

    if isinstance(error, GoogleServiceError):
        _report(f"Google API Error ({error.kind.value}): {error.message}")
        return 9

    if isinstance(error, click.Abort):
        click.echo(format_warning("\nOperation cancelled by user"))
        return 130

    click.echo(format_error(f"Unexpected Error: {type(error).__name__}"))
    click.echo(str(error))
    if debug:
        click.echo("\nFull stack trace:")
        click.echo(traceback.format_exc())
    else:
        click.echo(format_warning("\nRun with --debug flag for full stack trace"))
    return 255


class with_error_handling:
    """
    Context manager turning exceptions into an exit code.

    Example:
        with with_error_handling(debug):
            run_command()
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_val is not None and not isinstance(exc_val, (SystemExit, click.exceptions.Exit)):
            sys.exit(handle_cli_error(exc_val, self.debug))
        return False
