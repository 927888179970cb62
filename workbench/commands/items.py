"""
Item commands for workbench.

    workbench item add "Title" --url https://... --collection Reading
    workbench item list [--collection X] [--project P] [--search text]
    workbench item edit <id> --title ... --tag a --tag b
    workbench item move <id> <collection>
    workbench item delete <id>
"""

from typing import List, Optional

import typer
from rich.table import Table

from ..database import Store
from ..models.types import Item, ItemPatch, ItemSource, NewItem
from ..utils.datetime_utils import format_ts
from ..utils.output import console, print_json
from ._helpers import current_store, handle_command_error, resolve_id, short_id

app = typer.Typer(help="Add, list, edit and delete saved items")


def resolve_collection(store: Store, ref: str) -> str:
    """Collections may be named by id, id prefix or exact name."""
    collections = store.get_all_collections()
    by_name = [c.id for c in collections if c.name.lower() == ref.lower()]
    if len(by_name) == 1:
        return by_name[0]
    return resolve_id(ref, [c.id for c in collections], "collection")


def resolve_item(store: Store, ref: str) -> str:
    return resolve_id(ref, [i.id for i in store.get_all_items()], "item")


def _truncate(text: str, width: int = 50) -> str:
    return text[:width] + "..." if len(text) > width else text


def _print_items(store: Store, items: List[Item]) -> None:
    names = {c.id: c.name for c in store.get_all_collections()}
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan", width=8)
    table.add_column("Title", style="white")
    table.add_column("URL", style="blue")
    table.add_column("Collections", style="green")
    table.add_column("Updated", style="dim")

    for item in items:
        table.add_row(
            short_id(item.id),
            _truncate(item.title),
            _truncate(item.url, 40) if item.url else "[dim]note[/dim]",
            ", ".join(names.get(c, c) for c in item.collection_ids),
            format_ts(item.updated_at),
        )
    console.print(table)


@app.command("add")
@handle_command_error("adding item")
def add(
    title: str = typer.Argument("", help="Item title (defaults to the URL)"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Page URL; omit for a note"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Free-form notes"),
    collection: Optional[List[str]] = typer.Option(
        None, "--collection", "-c", help="Collection name or id (repeatable)"
    ),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Project whose Unsorted collection receives the item"
    ),
) -> None:
    """Save a page or a note."""
    store = current_store()
    collection_ids = [resolve_collection(store, ref) for ref in collection or []]
    project_id = None
    if project:
        project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")
    item_id = store.add_item(
        NewItem(
            title=title,
            url=url,
            notes=notes,
            collection_ids=collection_ids,
            tags=list(tag or []),
            source=ItemSource.MANUAL,
        ),
        project_id=project_id,
    )
    console.print(f"[green]✅ Saved item[/green] [cyan]{short_id(item_id)}[/cyan]")


@app.command("list")
@handle_command_error("listing items")
def list_cmd(
    collection: Optional[str] = typer.Option(None, "--collection", "-c", help="Only this collection"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match title, URL or notes"),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum results to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List items, newest first."""
    store = current_store()
    project_id = None
    if project:
        project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")

    if collection:
        items = store.get_items_by_collection(resolve_collection(store, collection))
        if search:
            needle = search.lower()
            items = [i for i in items if needle in f"{i.title} {i.url or ''} {i.notes or ''}".lower()]
    elif search is not None or project_id:
        items = store.search_items(search or "", project_id=project_id)
    else:
        items = store.get_all_items()
    items = items[:limit]

    if json_output:
        print_json([i.to_dict() for i in items])
        return
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return
    _print_items(store, items)


@app.command("show")
@handle_command_error("showing item")
def show(item_ref: str = typer.Argument(..., help="Item id or id prefix")) -> None:
    """Show one item in full."""
    store = current_store()
    item = store.get_item(resolve_item(store, item_ref))
    if item is None:
        console.print(f"[red]Error: Item '{item_ref}' not found[/red]")
        raise typer.Exit(1)
    names = {c.id: c.name for c in store.get_all_collections()}
    console.print(f"[bold]{item.title}[/bold]  [dim]{item.id}[/dim]")
    if item.url:
        console.print(f"[blue]{item.url}[/blue]")
    console.print(f"Collections: {', '.join(names.get(c, c) for c in item.collection_ids)}")
    if item.tags:
        console.print(f"Tags: {', '.join(item.tags)}")
    console.print(f"Source: {item.source.value}  Created: {format_ts(item.created_at)}  Updated: {format_ts(item.updated_at)}")
    if item.notes:
        console.print()
        console.print(item.notes)


@app.command("edit")
@handle_command_error("editing item")
def edit(
    item_ref: str = typer.Argument(..., help="Item id or id prefix"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    url: Optional[str] = typer.Option(None, "--url", help="New URL (empty string makes it a note)"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Replace notes"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Replace tags (repeatable)"),
    collection: Optional[List[str]] = typer.Option(
        None, "--collection", "-c", help="Replace collections (repeatable)"
    ),
) -> None:
    """Update fields of an item."""
    store = current_store()
    item_id = resolve_item(store, item_ref)
    changes = {}
    if title is not None:
        changes["title"] = title
    if url is not None:
        changes["url"] = url
    if notes is not None:
        changes["notes"] = notes
    if tag:
        changes["tags"] = list(tag)
    if collection:
        changes["collection_ids"] = [resolve_collection(store, ref) for ref in collection]
    patch = ItemPatch(**changes)
    if patch.is_empty():
        console.print("[yellow]Nothing to change[/yellow]")
        return
    item = store.update_item(item_id, patch)
    console.print(f"[green]✅ Updated[/green] {item.title}")


@app.command("move")
@handle_command_error("moving item")
def move(
    item_ref: str = typer.Argument(..., help="Item id or id prefix"),
    collection: Optional[str] = typer.Argument(None, help="Target collection; omit for Unsorted"),
) -> None:
    """Put an item into exactly one collection."""
    store = current_store()
    item_id = resolve_item(store, item_ref)
    target = resolve_collection(store, collection) if collection else None
    item = store.set_item_collection(item_id, target)
    console.print(f"[green]✅ Moved[/green] {item.title}")


@app.command("delete")
@handle_command_error("deleting item")
def delete(
    item_ref: str = typer.Argument(..., help="Item id or id prefix"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Permanently delete an item."""
    store = current_store()
    item_id = resolve_item(store, item_ref)
    if not force:
        typer.confirm(f"Delete item {short_id(item_id)}?", abort=True)
    store.delete_item(item_id)
    console.print(f"[green]✅ Deleted item[/green] {short_id(item_id)}")
