"""Project commands for workbench."""

from typing import Optional

import typer
from rich.table import Table

from ..utils.datetime_utils import format_ts
from ..utils.output import console
from ._helpers import current_store, handle_command_error, resolve_id, short_id

app = typer.Typer(help="Manage projects")


@app.command("add")
@handle_command_error("adding project")
def add(
    name: str = typer.Argument(..., help="Project name"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create a project with its own Unsorted collection."""
    project_id = current_store().add_project(name, description=description)
    console.print(f"[green]✅ Created project[/green] {name} [cyan]{short_id(project_id)}[/cyan]")


@app.command("list")
@handle_command_error("listing projects")
def list_cmd() -> None:
    store = current_store()
    projects = store.get_all_projects()
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Description", style="dim")
    table.add_column("Updated", style="dim")
    for project in projects:
        name = f"{project.name} [dim](default)[/dim]" if project.is_default else project.name
        table.add_row(
            project.id if project.is_default else short_id(project.id),
            name,
            project.description or "",
            format_ts(project.updated_at),
        )
    console.print(table)


@app.command("delete")
@handle_command_error("deleting project")
def delete(
    project: str = typer.Argument(..., help="Project id or id prefix"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a project; its collections move to the default project."""
    store = current_store()
    project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")
    if not force:
        typer.confirm(f"Delete project {project_id}?", abort=True)
    if not store.delete_project(project_id):
        console.print("[red]Error: The default project cannot be deleted[/red]")
        raise typer.Exit(1)
    console.print("[green]✅ Deleted project[/green]")
