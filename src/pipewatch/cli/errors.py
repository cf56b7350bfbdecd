"""
Standardized error handling and exit codes for the pipewatch CLI.

Every command runs its async body through ``run_async`` so that errors are
reported the same way everywhere:

- UserFacingError: message printed, exit 1
- Ctrl+C / cancellation: silent stop, exit 0
- anything else: short message (traceback with --debug), exit 1
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import IntEnum
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from pipewatch.core.exceptions import UserFacingError

logger = logging.getLogger(__name__)

console = Console()

T = TypeVar("T")


class ExitCode(IntEnum):
    """Standard exit codes for pipewatch CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, failed run with --fail-on-error, or a user-facing error."""

    USER_ERROR = 2
    """Invalid command-line usage."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with optional guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No organization configured",
        ...     solution="export PIPEWATCH_ORG=<org>",
        ... )
    """
    console.print(f"[red]Error:[/red] {escape(problem)}", highlight=False)

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]", highlight=False)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}", highlight=False)


def print_warning(message: str) -> None:
    """Print a non-fatal warning (used as the hook service warning sink)."""
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)


def run_async(func: Callable[..., Awaitable[T]], *args: Any) -> T:
    """
    Run an async command body from Typer's sync context.

    Raises:
        typer.Exit: With the exit code matching the error, if one occurred
    """
    try:
        return asyncio.run(func(*args))
    except UserFacingError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.debug("Interrupted; stopping")
        raise typer.Exit(ExitCode.SUCCESS) from None
    except typer.Exit:
        raise
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print_error(f"Unexpected error: {e}", solution="pipewatch --debug <command>  # for details")
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e
