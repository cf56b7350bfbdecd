"""
Pipewatch CLI - Pipelines command.

List pipeline definitions in the configured project.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pipewatch.cli.common import create_client, get_config, require_project
from pipewatch.cli.errors import run_async

console = Console()


def pipelines() -> None:
    """
    List pipelines in the configured organization and project.

    Examples:
        pipewatch pipelines
        PIPEWATCH_PROJECT=other pipewatch pipelines
    """
    run_async(_pipelines)


async def _pipelines() -> None:
    config = get_config()
    organization, project = require_project(config)

    async with create_client(config) as client:
        found = await client.list_pipelines(organization, project)

    if not found:
        console.print(
            f"[yellow]No pipelines found in {escape(organization)}/{escape(project)}[/yellow]"
        )
        return

    table = Table(title=escape(f"Pipelines in {organization}/{project}"), show_header=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Folder", style="dim")

    for pipeline in sorted(found, key=lambda p: (p.folder.lower(), p.name.lower())):
        table.add_row(str(pipeline.id), escape(pipeline.name), escape(pipeline.folder))

    console.print(table)
    console.print(f"\n[dim]{len(found)} pipeline(s)[/dim]")
