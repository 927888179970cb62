"""Export, verify and import commands under `workbench backup`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..utils.output import console
from ._helpers import current_store, handle_command_error

logger = logging.getLogger(__name__)

app = typer.Typer(help="Export, verify and import store backups")


def _read(path: Path) -> str:
    try:
        return current_store().backups.read_backup(path)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error: cannot read {path}: {e}[/red]")
        raise typer.Exit(1) from None


@app.command("export")
@handle_command_error("exporting")
def export(
    output: Optional[Path] = typer.Argument(None, help="File to write; the backup directory when omitted"),
) -> None:
    """Write every project, collection, item and workspace to JSON."""
    store = current_store()
    document = store.export_all()
    try:
        if output is None:
            path = store.backups.write_export(document, reason="manual")
        else:
            output.write_text(document, encoding="utf-8")
            path = output
    except OSError as e:
        console.print(f"[red]Error: cannot write export: {e}[/red]")
        raise typer.Exit(1) from None
    console.print(f"[green]Export written:[/green] {path}")


@app.command("verify")
@handle_command_error("verifying backup")
def verify(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Export document")) -> None:
    """Check a document without touching the store."""
    result = current_store().verify_backup(_read(path))
    if not result.valid:
        console.print(f"[red]Invalid backup: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Valid backup[/green] (version {result.version})")
    for key, count in result.stats.items():
        console.print(f"  {key}: {count}")


@app.command("import")
@handle_command_error("importing")
def import_cmd(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Export document"),
    no_backup: bool = typer.Option(False, "--no-backup", help="Skip the safety export"),
) -> None:
    """Merge a document into the store. Existing records not in it are kept."""
    store = current_store()
    text = _read(path)
    result = store.verify_backup(text)
    if not result.valid:
        console.print(f"[red]Invalid backup: {result.error}[/red]")
        raise typer.Exit(1)
    if not store.import_all(text, backup_first=not no_backup):
        console.print("[red]Import failed; the store was left unchanged[/red]")
        raise typer.Exit(1)
    summary = ", ".join(f"{count} {key}" for key, count in result.stats.items() if count)
    console.print(f"[green]Imported[/green] {summary}")


@app.command(name="list")
@handle_command_error("listing backups")
def list_backups() -> None:
    """Show safety exports and pre-migration backups, newest first."""
    backups = current_store().backups.list_backups()
    if not backups:
        console.print("[yellow]No backups found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("File", style="white")
    table.add_column("Size", justify="right", style="yellow")
    for path in backups:
        table.add_row(path.name, f"{path.stat().st_size / 1024:.1f} KB")
    console.print(table)
