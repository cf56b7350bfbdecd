"""
Pipewatch CLI - Status command.

Show the stage/job/task tree of one run.
"""

import typer
from rich.console import Console
from rich.markup import escape

from pipewatch.cli.common import create_client, get_config, resolve_run
from pipewatch.cli.errors import run_async
from pipewatch.display import build_stage_tree, build_summary_text

console = Console()


def status(
    run: str = typer.Argument(..., help="Build id or build results URL"),
    depth: int = typer.Option(
        1,
        "--depth",
        "-d",
        min=1,
        max=3,
        help="1 = stages, 2 = + jobs, 3 = + tasks",
    ),
) -> None:
    """
    Show the status of a pipeline run.

    Examples:
        pipewatch status 1234
        pipewatch status 1234 --depth 3
        pipewatch status "https://dev.azure.com/acme/widgets/_build/results?buildId=1234"
    """
    run_async(_status, run, depth)


async def _status(run: str, depth: int) -> None:
    config = get_config()
    ref = resolve_run(run, config)

    async with create_client(config) as client:
        build = await client.get_build(ref.organization, ref.project, ref.build_id)
        timeline = await client.get_timeline(ref.organization, ref.project, ref.build_id)

    summary = build_summary_text(build.pipeline_name, ref.build_id, timeline)
    console.print(build_stage_tree(timeline, depth, title=summary))
    if build.url:
        console.print(f"[dim]{escape(build.url)}[/dim]", highlight=False)
