"""
TUI entry point: `workbench gui`.
"""

from typing import Optional

import typer

from ..config.constants import ALL_PROJECTS_ID, TUI_LOG_FILENAME, WORKBENCH_CONFIG_DIR
from ..utils.logging import setup_logging
from ..utils.output import console
from ._helpers import current_store, handle_command_error, resolve_id

app = typer.Typer()


@app.command()
@handle_command_error("starting the workbench")
def gui(
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Project to open (default: All Projects)"
    ),
) -> None:
    """Open the four-pane workbench TUI."""
    from ..ui.app import run_app

    store = current_store()
    project_id = ALL_PROJECTS_ID
    if project:
        project_id = resolve_id(project, [p.id for p in store.get_all_projects()], "project")

    # Log to a file only; stderr output would draw over the TUI
    setup_logging(log_file=WORKBENCH_CONFIG_DIR / TUI_LOG_FILENAME, console=False)
    try:
        run_app(store, project_id)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1) from e
