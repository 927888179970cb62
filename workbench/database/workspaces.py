"""
Workspace persistence. Windows are stored as a JSON document per workspace.
"""

import json
import sqlite3
from typing import Optional

from ..models.types import Workspace, WorkspaceWindow


def _row_to_workspace(row: sqlite3.Row) -> Workspace:
    return Workspace(
        id=row["id"],
        name=row["name"],
        project_id=row["project_id"],
        windows=[WorkspaceWindow.from_dict(w) for w in json.loads(row["windows"] or "[]")],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def list_workspaces(conn: sqlite3.Connection) -> list[Workspace]:
    """All workspaces, most recently updated first."""
    rows = conn.execute("SELECT * FROM workspaces ORDER BY updated_at DESC, id").fetchall()
    return [_row_to_workspace(row) for row in rows]


def get_workspace(conn: sqlite3.Connection, workspace_id: str) -> Optional[Workspace]:
    row = conn.execute("SELECT * FROM workspaces WHERE id = ?", (workspace_id,)).fetchone()
    return _row_to_workspace(row) if row else None


def save_workspace(conn: sqlite3.Connection, workspace: Workspace) -> None:
    conn.execute(
        """
        INSERT INTO workspaces (id, name, project_id, windows, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            project_id = excluded.project_id,
            windows = excluded.windows,
            created_at = excluded.created_at,
            updated_at = excluded.updated_at
    """,
        (
            workspace.id,
            workspace.name,
            workspace.project_id,
            json.dumps([w.to_dict() for w in workspace.windows]),
            workspace.created_at,
            workspace.updated_at,
        ),
    )


def detach_project(conn: sqlite3.Connection, project_id: str) -> int:
    """Unlink every workspace from a project that is going away."""
    cursor = conn.execute(
        "UPDATE workspaces SET project_id = NULL WHERE project_id = ?", (project_id,)
    )
    return cursor.rowcount


def delete_workspace(conn: sqlite3.Connection, workspace_id: str) -> bool:
    cursor = conn.execute("DELETE FROM workspaces WHERE id = ?", (workspace_id,))
    return cursor.rowcount > 0
