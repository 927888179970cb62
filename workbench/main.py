#!/usr/bin/env python3
"""
Main CLI entry point for workbench
"""

import typer

from workbench import __version__
from workbench.commands import backup, collections, items, projects, workspaces
from workbench.commands.gui import gui
from workbench.config.settings import validate_all_env_vars
from workbench.utils.logging import setup_logging
from workbench.utils.output import console

app = typer.Typer(
    help="workbench - collect pages into projects and arrange them across panes",
    no_args_is_help=True,
)
app.add_typer(items.app, name="item")
app.add_typer(collections.app, name="collection")
app.add_typer(projects.app, name="project")
app.add_typer(workspaces.app, name="workspace")
app.add_typer(backup.app, name="backup")
app.command()(gui)


@app.command()
def version() -> None:
    """Show workbench version"""
    typer.echo(f"workbench version {__version__}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """
    workbench - a local store of saved pages, collections, projects and
    workspace snapshots, with a four-pane TUI.

    [bold]Examples:[/bold]

    Save a page:
        [cyan]workbench item add "Docs" --url https://example.com[/cyan]

    List a collection:
        [cyan]workbench item list --collection Reading[/cyan]

    Back up everything:
        [cyan]workbench backup export[/cyan]
    """
    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive", err=True)
        raise typer.Exit(1)

    setup_logging(verbose=verbose)
    if quiet:
        console.quiet = True

    for message in validate_all_env_vars():
        console.print(f"[yellow]Warning: {message}[/yellow]")


def run():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    run()
