"""Collection commands for workbench."""

from typing import Optional

import typer
from rich.table import Table

from ..models.types import CollectionPatch
from ..utils.output import console
from ._helpers import current_store, handle_command_error, resolve_id, short_id
from .items import resolve_collection

app = typer.Typer(help="Manage collections")


@app.command("add")
@handle_command_error("adding collection")
def add(
    name: str = typer.Argument(..., help="Collection name"),
    color: Optional[str] = typer.Option(None, "--color", help="Hex colour, e.g. #22c55e"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Owning project"),
) -> None:
    """Create a collection."""
    store = current_store()
    project_id = None
    if project:
        project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")
    collection_id = store.add_collection(name, color=color, project_id=project_id)
    console.print(f"[green]✅ Created collection[/green] {name} [cyan]{short_id(collection_id)}[/cyan]")


@app.command("list")
@handle_command_error("listing collections")
def list_cmd(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
) -> None:
    """List collections with their item counts."""
    store = current_store()
    if project:
        project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")
        view = store.get_project_view(project_id)
        collections, counts = view.collections, view.item_counts()
    else:
        collections = store.get_all_collections()
        counts = {}
        for item in store.get_all_items():
            for cid in item.collection_ids:
                counts[cid] = counts.get(cid, 0) + 1

    if not collections:
        console.print("[yellow]No collections[/yellow]")
        return

    projects = {p.id: p.name for p in store.get_all_projects()}
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Project", style="green")
    table.add_column("Shared with", style="dim")
    table.add_column("Items", justify="right", style="yellow")
    for col in collections:
        shared = [projects.get(p, p) for p in col.project_ids if p != col.primary_project_id]
        name = f"[{col.color}]●[/] {col.name}" if col.color else col.name
        table.add_row(
            col.id if col.is_default else short_id(col.id),
            name,
            projects.get(col.primary_project_id, col.primary_project_id),
            ", ".join(shared),
            str(counts.get(col.id, 0)),
        )
    console.print(table)


@app.command("rename")
@handle_command_error("renaming collection")
def rename(
    collection: str = typer.Argument(..., help="Collection name or id"),
    new_name: str = typer.Argument(..., help="New name"),
) -> None:
    store = current_store()
    updated = store.update_collection(resolve_collection(store, collection), CollectionPatch(name=new_name))
    console.print(f"[green]✅ Renamed to[/green] {updated.name}")


@app.command("delete")
@handle_command_error("deleting collection")
def delete(
    collection: str = typer.Argument(..., help="Collection name or id"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a collection; its items move to the project's Unsorted."""
    store = current_store()
    collection_id = resolve_collection(store, collection)
    if not force:
        typer.confirm(f"Delete collection '{collection}'?", abort=True)
    moved = store.delete_collection(collection_id)
    console.print(f"[green]✅ Deleted collection[/green] ({moved} item(s) moved to Unsorted)")


@app.command("share")
@handle_command_error("sharing collection")
def share(
    collection: str = typer.Argument(..., help="Collection name or id"),
    project: str = typer.Argument(..., help="Project to share with"),
    remove: bool = typer.Option(False, "--remove", help="Stop sharing instead"),
) -> None:
    """Make a collection visible in another project."""
    store = current_store()
    collection_id = resolve_collection(store, collection)
    project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")
    if remove:
        store.unshare_collection(collection_id, project_id)
        console.print("[green]✅ No longer shared[/green]")
    else:
        store.share_collection(collection_id, project_id)
        console.print("[green]✅ Shared[/green]")
