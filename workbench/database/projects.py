"""
Project persistence.
"""

import sqlite3
from typing import Optional

from ..models.types import Project


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        is_default=bool(row["is_default"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def list_projects(conn: sqlite3.Connection) -> list[Project]:
    """All projects, most recently updated first."""
    rows = conn.execute("SELECT * FROM projects ORDER BY updated_at DESC, id").fetchall()
    return [_row_to_project(row) for row in rows]


def get_project(conn: sqlite3.Connection, project_id: str) -> Optional[Project]:
    row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
    return _row_to_project(row) if row else None


def save_project(conn: sqlite3.Connection, project: Project) -> None:
    conn.execute(
        """
        INSERT INTO projects (id, name, description, is_default, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            description = excluded.description,
            is_default = excluded.is_default,
            created_at = excluded.created_at,
            updated_at = excluded.updated_at
    """,
        (
            project.id,
            project.name,
            project.description,
            int(project.is_default),
            project.created_at,
            project.updated_at,
        ),
    )


def delete_project(conn: sqlite3.Connection, project_id: str) -> bool:
    cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
    return cursor.rowcount > 0
