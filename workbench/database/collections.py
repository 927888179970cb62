"""
Collection persistence: ``collections`` rows plus shared-project rows in
``collection_projects``.
"""

import sqlite3
from typing import Optional

from ..models.types import Collection


def _project_ids(conn: sqlite3.Connection, collection_ids: Optional[list[str]] = None) -> dict[str, list[str]]:
    if collection_ids is None:
        rows = conn.execute(
            "SELECT collection_id, project_id FROM collection_projects ORDER BY rowid"
        ).fetchall()
    else:
        if not collection_ids:
            return {}
        placeholders = ",".join("?" for _ in collection_ids)
        rows = conn.execute(
            f"SELECT collection_id, project_id FROM collection_projects WHERE collection_id IN ({placeholders}) ORDER BY rowid",
            collection_ids,
        ).fetchall()
    result: dict[str, list[str]] = {}
    for row in rows:
        result.setdefault(row["collection_id"], []).append(row["project_id"])
    return result


def _row_to_collection(row: sqlite3.Row, project_ids: list[str]) -> Collection:
    return Collection(
        id=row["id"],
        name=row["name"],
        primary_project_id=row["primary_project_id"],
        project_ids=list(project_ids),
        is_default=bool(row["is_default"]),
        color=row["color"],
        created_at=row["created_at"],
        updated_at=row["updated_at"] if row["updated_at"] is not None else row["created_at"],
    )


def list_collections(conn: sqlite3.Connection) -> list[Collection]:
    """All collections; defaults first, then by name."""
    rows = conn.execute(
        "SELECT * FROM collections ORDER BY is_default DESC, name COLLATE NOCASE, id"
    ).fetchall()
    shared = _project_ids(conn)
    return [_row_to_collection(row, shared.get(row["id"], [])) for row in rows]


def get_collection(conn: sqlite3.Connection, collection_id: str) -> Optional[Collection]:
    row = conn.execute("SELECT * FROM collections WHERE id = ?", (collection_id,)).fetchone()
    if row is None:
        return None
    return _row_to_collection(row, _project_ids(conn, [collection_id]).get(collection_id, []))


def collections_for_project(conn: sqlite3.Connection, project_id: str) -> list[Collection]:
    """Collections owned by or shared with ``project_id``."""
    rows = conn.execute(
        """
        SELECT * FROM collections
        WHERE primary_project_id = ?
           OR id IN (SELECT collection_id FROM collection_projects WHERE project_id = ?)
        ORDER BY is_default DESC, name COLLATE NOCASE, id
    """,
        (project_id, project_id),
    ).fetchall()
    shared = _project_ids(conn, [row["id"] for row in rows])
    return [_row_to_collection(row, shared.get(row["id"], [])) for row in rows]


def existing_ids(conn: sqlite3.Connection, collection_ids: list[str]) -> set[str]:
    if not collection_ids:
        return set()
    placeholders = ",".join("?" for _ in collection_ids)
    rows = conn.execute(
        f"SELECT id FROM collections WHERE id IN ({placeholders})", collection_ids
    ).fetchall()
    return {row["id"] for row in rows}


def save_collection(conn: sqlite3.Connection, collection: Collection) -> None:
    """Insert or overwrite a collection and replace its project set."""
    conn.execute(
        """
        INSERT INTO collections
            (id, name, color, created_at, updated_at, primary_project_id, is_default)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            color = excluded.color,
            created_at = excluded.created_at,
            updated_at = excluded.updated_at,
            primary_project_id = excluded.primary_project_id,
            is_default = excluded.is_default
    """,
        (
            collection.id,
            collection.name,
            collection.color,
            collection.created_at,
            collection.updated_at,
            collection.primary_project_id,
            int(collection.is_default),
        ),
    )
    conn.execute("DELETE FROM collection_projects WHERE collection_id = ?", (collection.id,))
    conn.executemany(
        "INSERT OR IGNORE INTO collection_projects (collection_id, project_id) VALUES (?, ?)",
        [(collection.id, pid) for pid in collection.project_ids],
    )


def delete_collection(conn: sqlite3.Connection, collection_id: str) -> bool:
    cursor = conn.execute("DELETE FROM collections WHERE id = ?", (collection_id,))
    return cursor.rowcount > 0
