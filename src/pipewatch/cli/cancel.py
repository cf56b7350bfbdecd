"""
Pipewatch CLI - Cancel command.
"""

import typer
from rich.console import Console

from pipewatch.cli.common import create_client, get_config, resolve_run
from pipewatch.cli.errors import run_async

console = Console()


def cancel(
    run: str = typer.Argument(..., help="Build id or build results URL"),
) -> None:
    """
    Cancel a running pipeline run.

    Completed runs and runs that are already being canceled are left alone.

    Examples:
        pipewatch cancel 1234
    """
    run_async(_cancel, run)


async def _cancel(run: str) -> None:
    config = get_config()
    ref = resolve_run(run, config)

    async with create_client(config) as client:
        await client.cancel_build(ref.organization, ref.project, ref.build_id)

    console.print(f"Build {ref.build_id} has been canceled.", highlight=False)
