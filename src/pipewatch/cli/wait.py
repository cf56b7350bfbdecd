"""
Pipewatch CLI - Wait command.

Poll a run until every stage has completed, then run completion hooks.
"""

import typer
from rich.console import Console
from rich.markup import escape

from pipewatch.cli.common import create_client, get_config, resolve_run
from pipewatch.cli.errors import ExitCode, print_warning, run_async
from pipewatch.core.devops import BuildSummary, RunReference
from pipewatch.core.hooks import HookContext, HookService
from pipewatch.core.monitor import PollProgress, RunMonitor, WaitResult
from pipewatch.display import (
    build_stage_tree,
    build_summary_text,
    format_elapsed,
    format_status_counts,
)

console = Console()


def wait(
    run: str = typer.Argument(..., help="Build id or build results URL"),
    fail_on_error: bool = typer.Option(
        False,
        "--fail-on-error",
        "-f",
        help="Exit with code 1 if the run failed or was canceled",
    ),
    no_hooks: bool = typer.Option(
        False,
        "--no-hooks",
        help="Do not run pipeline_complete/success/fail hooks",
    ),
) -> None:
    """
    Wait for a pipeline run to finish.

    Polls every 5 seconds at first, slowing by 5 seconds per check up to 30.
    Press Ctrl+C to stop waiting; the run itself is not affected.

    Examples:
        pipewatch wait 1234
        pipewatch wait 1234 --fail-on-error
    """
    failed = run_async(_wait, run, no_hooks)
    if fail_on_error and failed:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def print_progress(progress: PollProgress) -> None:
    """Print stage/job counts and the next check time after an incomplete poll."""
    timeline = progress.timeline
    console.print(format_status_counts("Stages", timeline.stages), highlight=False)
    console.print(format_status_counts("Jobs", timeline.jobs), highlight=False)
    console.print(
        f"Elapsed: {format_elapsed(progress.elapsed_seconds)}. "
        f"Next check in {progress.next_interval}s...",
        highlight=False,
    )
    console.print()


def print_final_summary(build: BuildSummary, result: WaitResult) -> None:
    summary = build_summary_text(build.pipeline_name, build.id, result.timeline)
    summary.append(f" - {format_elapsed(result.elapsed_seconds)} elapsed")
    console.print(build_stage_tree(result.timeline, 1, title=summary))
    console.print(f"[dim]View details: pipewatch status {build.id}[/dim]", highlight=False)


def completion_context(ref: RunReference, build: BuildSummary) -> HookContext:
    """Hook context describing a finished run."""
    return HookContext(
        org=ref.organization,
        project=ref.project,
        pipeline_id=build.pipeline_id,
        pipeline_name=build.pipeline_name,
        ref=build.source_branch,
        build_id=build.id,
    )


async def _wait(run: str, no_hooks: bool) -> bool:
    config = get_config()
    ref = resolve_run(run, config)
    monitor = RunMonitor(
        initial_interval=config.wait.initial_interval_seconds,
        interval_increment=config.wait.interval_increment_seconds,
        max_interval=config.wait.max_interval_seconds,
    )

    async with create_client(config) as client:
        build = await client.get_build(ref.organization, ref.project, ref.build_id)
        console.print(
            f"Waiting for build #{build.id} ({escape(build.pipeline_name)})...", highlight=False
        )

        result = await monitor.wait(
            lambda: client.get_timeline(ref.organization, ref.project, ref.build_id),
            on_progress=print_progress,
        )

    print_final_summary(build, result)

    if not no_hooks:
        hooks = HookService(config.hooks, on_warning=print_warning)
        await hooks.run_completion_hooks(completion_context(ref, build), failed=result.failed)

    return result.failed
