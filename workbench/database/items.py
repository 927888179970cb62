"""
Item persistence: rows in ``items`` plus membership rows in ``item_collections``.

Functions take an open connection; callers decide the transaction boundary.
"""

import json
import sqlite3
from typing import Iterable, Optional

from ..models.types import Item, ItemSource


def _memberships(conn: sqlite3.Connection, item_ids: Optional[list[str]] = None) -> dict[str, list[str]]:
    if item_ids is None:
        rows = conn.execute(
            "SELECT item_id, collection_id FROM item_collections ORDER BY rowid"
        ).fetchall()
    else:
        if not item_ids:
            return {}
        placeholders = ",".join("?" for _ in item_ids)
        rows = conn.execute(
            f"SELECT item_id, collection_id FROM item_collections WHERE item_id IN ({placeholders}) ORDER BY rowid",
            item_ids,
        ).fetchall()
    result: dict[str, list[str]] = {}
    for row in rows:
        result.setdefault(row["item_id"], []).append(row["collection_id"])
    return result


def _row_to_item(row: sqlite3.Row, collection_ids: list[str]) -> Item:
    return Item(
        id=row["id"],
        title=row["title"],
        url=row["url"],
        favicon=row["favicon"],
        notes=row["notes"],
        collection_ids=list(collection_ids),
        tags=json.loads(row["tags"] or "[]"),
        source=ItemSource.coerce(row["source"]),
        metadata=json.loads(row["metadata"]) if row["metadata"] else {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def list_items(conn: sqlite3.Connection) -> list[Item]:
    """All items, newest first."""
    rows = conn.execute("SELECT * FROM items ORDER BY created_at DESC, id").fetchall()
    memberships = _memberships(conn)
    return [_row_to_item(row, memberships.get(row["id"], [])) for row in rows]


def get_item(conn: sqlite3.Connection, item_id: str) -> Optional[Item]:
    row = conn.execute("SELECT * FROM items WHERE id = ?", (item_id,)).fetchone()
    if row is None:
        return None
    return _row_to_item(row, _memberships(conn, [item_id]).get(item_id, []))


def items_in_collection(conn: sqlite3.Connection, collection_id: str) -> list[Item]:
    """Items whose membership set contains ``collection_id``."""
    ids = [
        row["item_id"]
        for row in conn.execute(
            "SELECT item_id FROM item_collections WHERE collection_id = ?", (collection_id,)
        ).fetchall()
    ]
    return items_by_ids(conn, ids)


def items_in_any_collection(conn: sqlite3.Connection, collection_ids: Iterable[str]) -> list[Item]:
    wanted = list(dict.fromkeys(collection_ids))
    if not wanted:
        return []
    placeholders = ",".join("?" for _ in wanted)
    ids = [
        row["item_id"]
        for row in conn.execute(
            f"SELECT DISTINCT item_id FROM item_collections WHERE collection_id IN ({placeholders})",
            wanted,
        ).fetchall()
    ]
    return items_by_ids(conn, ids)


def items_by_ids(conn: sqlite3.Connection, item_ids: list[str]) -> list[Item]:
    if not item_ids:
        return []
    placeholders = ",".join("?" for _ in item_ids)
    rows = conn.execute(
        f"SELECT * FROM items WHERE id IN ({placeholders}) ORDER BY created_at DESC, id",
        item_ids,
    ).fetchall()
    memberships = _memberships(conn, [row["id"] for row in rows])
    return [_row_to_item(row, memberships.get(row["id"], [])) for row in rows]


def save_item(conn: sqlite3.Connection, item: Item) -> None:
    """Insert or overwrite an item and replace its membership set."""
    conn.execute(
        """
        INSERT INTO items
            (id, url, title, favicon, notes, tags, source, metadata, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            url = excluded.url,
            title = excluded.title,
            favicon = excluded.favicon,
            notes = excluded.notes,
            tags = excluded.tags,
            source = excluded.source,
            metadata = excluded.metadata,
            created_at = excluded.created_at,
            updated_at = excluded.updated_at
    """,
        (
            item.id,
            item.url,
            item.title,
            item.favicon,
            item.notes,
            json.dumps(list(item.tags)),
            item.source.value,
            json.dumps(item.metadata) if item.metadata else None,
            item.created_at,
            item.updated_at,
        ),
    )
    conn.execute("DELETE FROM item_collections WHERE item_id = ?", (item.id,))
    conn.executemany(
        "INSERT OR IGNORE INTO item_collections (item_id, collection_id) VALUES (?, ?)",
        [(item.id, cid) for cid in item.collection_ids],
    )


def delete_item(conn: sqlite3.Connection, item_id: str) -> bool:
    cursor = conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
    return cursor.rowcount > 0


def count_items(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]
