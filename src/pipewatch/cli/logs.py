"""
Pipewatch CLI - Logs command.

Download the log of one stage, job or task of a run.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from pipewatch.cli.common import create_client, get_config, resolve_run
from pipewatch.cli.errors import run_async

console = Console()


def logs(
    run: str = typer.Argument(..., help="Build id or build results URL"),
    log_id: int = typer.Argument(..., min=0, help="Log id, as shown by status --depth 3"),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="File to write (default: build-<id>-log-<log id>.txt in the temp directory)",
    ),
) -> None:
    """
    Download a log from a pipeline run and print where it was saved.

    Examples:
        pipewatch status 1234 --depth 3
        pipewatch logs 1234 17
        less "$(pipewatch logs 1234 17)"
    """
    run_async(_logs, run, log_id, output)


async def _logs(run: str, log_id: int, output: Path | None) -> None:
    config = get_config()
    ref = resolve_run(run, config)

    async with create_client(config) as client:
        path = await client.get_build_log(
            ref.organization, ref.project, ref.build_id, log_id, destination=output
        )

    console.print(escape(str(path)), highlight=False, soft_wrap=True)
