"""
Pipewatch CLI - Run command.

Queue a new pipeline run, after pipeline_queue hooks approve it.
"""

import typer
from rich.console import Console
from rich.markup import escape

from pipewatch.cli.common import create_client, get_config, parse_key_values, require_project
from pipewatch.cli.errors import print_warning, run_async
from pipewatch.core.exceptions import RemoteServiceError
from pipewatch.core.hooks import HookContext, HookService

console = Console()


def run(
    pipeline_id: int = typer.Argument(..., help="Pipeline definition id"),
    ref: str | None = typer.Option(
        None,
        "--ref",
        "-r",
        help="Git ref to build, e.g. refs/heads/main",
    ),
    parameters: list[str] | None = typer.Option(
        None,
        "--parameter",
        "-p",
        help="Template parameter as key=value (repeatable)",
    ),
    variables: list[str] | None = typer.Option(
        None,
        "--var",
        help="Variable as key=value (repeatable)",
    ),
    skip: list[str] | None = typer.Option(
        None,
        "--skip",
        help="Stage to skip (repeatable)",
    ),
) -> None:
    """
    Queue a pipeline run.

    pipeline_queue hooks run first and may block the run.

    Examples:
        pipewatch run 12
        pipewatch run 12 --ref refs/heads/release -p env=staging --var verbose=true
        pipewatch run 12 --skip Deploy
    """
    run_async(
        _run,
        pipeline_id,
        ref,
        parameters or [],
        variables or [],
        skip or [],
    )


async def _run(
    pipeline_id: int,
    ref: str | None,
    raw_parameters: list[str],
    raw_variables: list[str],
    skip: list[str],
) -> None:
    parameters = parse_key_values(raw_parameters, "--parameter")
    variables = parse_key_values(raw_variables, "--var")
    config = get_config()
    organization, project = require_project(config)

    async with create_client(config) as client:
        pipeline = await client.get_pipeline(organization, project, pipeline_id)

        context = HookContext(
            org=organization,
            project=project,
            pipeline_id=pipeline.id,
            pipeline_name=pipeline.name,
            ref=ref,
            parameters=parameters,
            variables=variables,
        )
        hooks = HookService(config.hooks, on_warning=print_warning)
        await hooks.run_pipeline_queue_hooks(context)

        try:
            queued = await client.queue_run(
                organization,
                project,
                pipeline_id,
                ref=ref,
                parameters=parameters,
                variables=variables,
                stages_to_skip=skip,
            )
        except RemoteServiceError as e:
            raise RemoteServiceError(
                f"Failed to queue pipeline run: {e}", status_code=e.status_code
            ) from e

    console.print(
        f"[green]✓[/green] Queued run #{queued.id} of {escape(pipeline.name)}", highlight=False
    )
    console.print(escape(queued.web_url), highlight=False, soft_wrap=True)
