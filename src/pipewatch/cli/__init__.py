"""
Pipewatch CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from pipewatch import __version__
from pipewatch.cli import cancel, hooks, logs, pipelines, run, status, wait
from pipewatch.core.config import load_layered_env

# Help panel names for command grouping
PANEL_RUNS = "Watch and Control Runs"
PANEL_PROJECT = "Inspect Your Project"

app = typer.Typer(
    name="pipewatch",
    help="Monitor and control Azure DevOps pipeline runs",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Pipewatch - watch Azure DevOps pipeline runs from the terminal.

    Configuration comes from PIPEWATCH_ORG, PIPEWATCH_PROJECT and
    AZURE_DEVOPS_PAT, or from .pipewatch.json in the current directory.

    Examples:
        pipewatch run 12 --ref refs/heads/main
        pipewatch wait 1234 --fail-on-error
        pipewatch status 1234 --depth 2
    """
    setup_logging(debug)

    # Precedence: OS env > project .env > user .env
    load_layered_env()

    ctx.obj = {"debug": debug}


# =============================================================================
# Watch and Control Runs
# =============================================================================

app.command(name="status", rich_help_panel=PANEL_RUNS)(status.status)
app.command(name="wait", rich_help_panel=PANEL_RUNS)(wait.wait)
app.command(name="run", rich_help_panel=PANEL_RUNS)(run.run)
app.command(name="cancel", rich_help_panel=PANEL_RUNS)(cancel.cancel)
app.command(name="logs", rich_help_panel=PANEL_RUNS)(logs.logs)


# =============================================================================
# Inspect Your Project
# =============================================================================

app.command(name="pipelines", rich_help_panel=PANEL_PROJECT)(pipelines.pipelines)
app.add_typer(hooks.app, name="hooks", rich_help_panel=PANEL_PROJECT)


@app.command(rich_help_panel=PANEL_PROJECT)
def version() -> None:
    """Show pipewatch version and exit."""
    console.print(f"pipewatch version {__version__}")


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
