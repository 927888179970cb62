"""Workspace (window/tab snapshot) commands for workbench."""

import typer
from rich.table import Table

from ..models.types import WorkspacePatch
from ..utils.datetime_utils import format_ts
from ..utils.output import console, print_json
from ._helpers import current_store, handle_command_error, resolve_id, short_id

app = typer.Typer(help="Inspect saved workspaces")


def _resolve(ref: str) -> str:
    return resolve_id(ref, [w.id for w in current_store().get_all_workspaces()], "workspace")


@app.command("list")
@handle_command_error("listing workspaces")
def list_cmd() -> None:
    workspaces = current_store().get_all_workspaces()
    if not workspaces:
        console.print("[yellow]No saved workspaces[/yellow]")
        return
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan", width=8)
    table.add_column("Name", style="white")
    table.add_column("Windows", justify="right")
    table.add_column("Tabs", justify="right")
    table.add_column("Updated", style="dim")
    for ws in workspaces:
        table.add_row(short_id(ws.id), ws.name, str(len(ws.windows)), str(ws.tab_count), format_ts(ws.updated_at))
    console.print(table)


@app.command("show")
@handle_command_error("showing workspace")
def show(
    workspace: str = typer.Argument(..., help="Workspace id or id prefix"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ws = current_store().get_workspace(_resolve(workspace))
    if ws is None:
        console.print(f"[red]Error: Workspace '{workspace}' not found[/red]")
        raise typer.Exit(1)
    if json_output:
        print_json(ws.to_dict())
        return
    console.print(f"[bold]{ws.name}[/bold] [dim]({ws.tab_count} tabs)[/dim]")
    for number, window in enumerate(ws.windows, start=1):
        console.print(f"\n[cyan]{window.name or f'Window {number}'}[/cyan]")
        for tab in window.tabs:
            console.print(f"  • {tab.title or tab.url} [dim]{tab.url}[/dim]")


@app.command("rename")
@handle_command_error("renaming workspace")
def rename(
    workspace: str = typer.Argument(..., help="Workspace id or id prefix"),
    new_name: str = typer.Argument(..., help="New name"),
) -> None:
    updated = current_store().update_workspace(_resolve(workspace), WorkspacePatch(name=new_name))
    console.print(f"[green]✅ Renamed to[/green] {updated.name}")


@app.command("delete")
@handle_command_error("deleting workspace")
def delete(
    workspace: str = typer.Argument(..., help="Workspace id or id prefix"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    workspace_id = _resolve(workspace)
    if not force:
        typer.confirm(f"Delete workspace {short_id(workspace_id)}?", abort=True)
    current_store().delete_workspace(workspace_id)
    console.print("[green]✅ Deleted workspace[/green]")
