"""
Pipewatch CLI - Hooks commands.

Inspect the lifecycle hooks configured for this project.
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pipewatch.cli.common import get_config
from pipewatch.cli.errors import run_async
from pipewatch.core.hooks import HookPoint

app = typer.Typer(
    name="hooks",
    help="Inspect configured lifecycle hooks",
    no_args_is_help=True,
)

console = Console()


@app.command(name="list")
def list_hooks() -> None:
    """
    Show configured hooks for each lifecycle point.

    Hooks are read from the ``hooks`` section of .pipewatch.json and
    ~/.config/pipewatch/config.json.

    Examples:
        pipewatch hooks list
    """
    run_async(_list_hooks)


async def _list_hooks() -> None:
    config = get_config()

    if config.hooks.total == 0:
        console.print("[yellow]No hooks configured[/yellow]")
        console.print(
            "[dim]Add a \"hooks\" section to .pipewatch.json, for example:[/dim]\n"
            '[dim]  {"hooks": {"pipeline_queue": '
            '[{"name": "freeze", "command": "./check-freeze.sh"}]}}[/dim]',
            highlight=False,
        )
        return

    table = Table(title="Configured Hooks", show_header=True)
    table.add_column("Point", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Command")
    table.add_column("Timeout", justify="right")
    table.add_column("On failure")

    for point in HookPoint:
        for hook in config.hooks.for_point(point):
            table.add_row(
                point.value,
                escape(hook.name),
                escape(" ".join(hook.argv)),
                f"{hook.timeout_seconds}s",
                hook.on_failure.value,
            )

    console.print(table)
