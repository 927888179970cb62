"""Database migration system for workbench.

Each migration runs inside its own transaction together with the
``schema_version`` bump, so a crash mid-upgrade leaves the file at the
previous version rather than half-migrated.
"""

import logging
import sqlite3
from typing import Callable, Optional

from ..config.constants import (
    DEFAULT_COLLECTION_COLOR,
    DEFAULT_COLLECTION_NAME,
    DEFAULT_PROJECT_ID,
    DEFAULT_PROJECT_NAME,
    DEFAULT_UNSORTED_COLLECTION_ID,
    SCHEMA_VERSION,
)
from ..exceptions import SchemaVersionMismatchError
from ..utils.datetime_utils import now_ms

logger = logging.getLogger(__name__)


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get the current schema version (0 for a fresh file)."""
    cursor = conn.cursor()
    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """
    )

    cursor.execute("SELECT MAX(version) FROM schema_version")
    result = cursor.fetchone()
    return result[0] if result[0] is not None else 0


def set_schema_version(conn: sqlite3.Connection, version: int):
    """Set the schema version."""
    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))


def migration_001_create_items_and_collections(conn: sqlite3.Connection):
    """Create the first single-collection items schema."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS collections (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            color TEXT,
            created_at INTEGER NOT NULL
        )
    """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS items (
            id TEXT PRIMARY KEY,
            url TEXT,
            title TEXT NOT NULL DEFAULT '',
            favicon TEXT,
            notes TEXT,
            collection_id TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            source TEXT NOT NULL DEFAULT 'manual',
            metadata TEXT,
            created_at INTEGER NOT NULL
        )
    """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_items_url ON items(url)")


def migration_002_add_workspaces(conn: sqlite3.Connection):
    """Add saved browser layouts and updated_at tracking."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS workspaces (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            windows TEXT NOT NULL DEFAULT '[]',
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        )
    """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_workspaces_updated ON workspaces(updated_at DESC)")
    conn.execute("ALTER TABLE items ADD COLUMN updated_at INTEGER")
    conn.execute("ALTER TABLE collections ADD COLUMN updated_at INTEGER")


def migration_003_projects_and_memberships(conn: sqlite3.Connection):
    """Introduce projects and many-to-many item/collection membership."""
    now = now_ms()

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            is_default INTEGER NOT NULL DEFAULT 0,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        )
    """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_projects_updated ON projects(updated_at DESC)")
    conn.execute(
        """
        INSERT OR IGNORE INTO projects (id, name, is_default, created_at, updated_at)
        VALUES (?, ?, 1, ?, ?)
    """,
        (DEFAULT_PROJECT_ID, DEFAULT_PROJECT_NAME, now, now),
    )

    # Collections gain an owning project and a default flag
    conn.execute(
        f"ALTER TABLE collections ADD COLUMN primary_project_id TEXT NOT NULL DEFAULT '{DEFAULT_PROJECT_ID}'"
    )
    conn.execute("ALTER TABLE collections ADD COLUMN is_default INTEGER NOT NULL DEFAULT 0")
    conn.execute("UPDATE collections SET updated_at = COALESCE(updated_at, created_at)")
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_collections_primary_project ON collections(primary_project_id)"
    )
    conn.execute(
        """
        INSERT OR IGNORE INTO collections
            (id, name, color, created_at, updated_at, primary_project_id, is_default)
        VALUES (?, ?, ?, ?, ?, ?, 1)
    """,
        (
            DEFAULT_UNSORTED_COLLECTION_ID,
            DEFAULT_COLLECTION_NAME,
            DEFAULT_COLLECTION_COLOR,
            now,
            now,
            DEFAULT_PROJECT_ID,
        ),
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS collection_projects (
            collection_id TEXT NOT NULL,
            project_id TEXT NOT NULL,
            PRIMARY KEY (collection_id, project_id),
            FOREIGN KEY (collection_id) REFERENCES collections(id) ON DELETE CASCADE
        )
    """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_collection_projects_project ON collection_projects(project_id)"
    )
    conn.execute(
        """
        INSERT OR IGNORE INTO collection_projects (collection_id, project_id)
        SELECT id, primary_project_id FROM collections
    """
    )

    # Items lose the single collection_id column; the table is rebuilt
    # before anything references it.
    conn.execute(
        """
        CREATE TABLE items_new (
            id TEXT PRIMARY KEY,
            url TEXT,
            title TEXT NOT NULL DEFAULT '',
            favicon TEXT,
            notes TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            source TEXT NOT NULL DEFAULT 'manual',
            metadata TEXT,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        )
    """
    )
    conn.execute(
        """
        INSERT INTO items_new
            (id, url, title, favicon, notes, tags, source, metadata, created_at, updated_at)
        SELECT id, url, COALESCE(title, ''), favicon, notes, COALESCE(tags, '[]'),
               COALESCE(source, 'manual'), metadata, created_at,
               COALESCE(updated_at, created_at)
        FROM items
    """
    )
    legacy_memberships = conn.execute(
        "SELECT id, collection_id FROM items"
    ).fetchall()
    conn.execute("DROP TABLE items")
    conn.execute("ALTER TABLE items_new RENAME TO items")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_items_url ON items(url)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_items_updated ON items(updated_at DESC)")

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS item_collections (
            item_id TEXT NOT NULL,
            collection_id TEXT NOT NULL,
            PRIMARY KEY (item_id, collection_id),
            FOREIGN KEY (item_id) REFERENCES items(id) ON DELETE CASCADE
        )
    """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_item_collections_collection ON item_collections(collection_id)"
    )
    for item_id, collection_id in legacy_memberships:
        conn.execute(
            "INSERT OR IGNORE INTO item_collections (item_id, collection_id) VALUES (?, ?)",
            (item_id, collection_id or DEFAULT_UNSORTED_COLLECTION_ID),
        )

    # Workspaces may now be linked to a project
    conn.execute("ALTER TABLE workspaces ADD COLUMN project_id TEXT")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_workspaces_project ON workspaces(project_id)")


# List of all migrations in order
MIGRATIONS: list[tuple[int, str, Callable]] = [
    (1, "Create items and collections", migration_001_create_items_and_collections),
    (2, "Add workspaces", migration_002_add_workspaces),
    (3, "Add projects and multi-collection membership", migration_003_projects_and_memberships),
]


def check_versions(migrations: list, schema_version: int) -> int:
    """Return the last migration's version; it must equal ``schema_version``."""
    last = migrations[-1][0]
    if last != schema_version:
        raise RuntimeError(f"SCHEMA_VERSION ({schema_version}) must match the last migration ({last})")
    return last


CURRENT_VERSION = check_versions(MIGRATIONS, SCHEMA_VERSION)


def run_migrations(
    conn: sqlite3.Connection,
    migrations: Optional[list[tuple[int, str, Callable]]] = None,
    before_migrate: Optional[Callable[[int, int], None]] = None,
) -> int:
    """Run all pending migrations on an autocommit connection.

    Args:
        conn: Connection opened with ``isolation_level=None``.
        migrations: Migrations to apply. Defaults to MIGRATIONS.
        before_migrate: Hook called once before upgrading a non-empty file.

    Returns:
        The resulting schema version.

    Raises:
        SchemaVersionMismatchError: The file is newer than the migrations known here.
    """
    if migrations is None:
        migrations = MIGRATIONS
    target = migrations[-1][0] if migrations else 0

    current_version = get_schema_version(conn)
    if current_version > CURRENT_VERSION:
        raise SchemaVersionMismatchError(
            "Database was written by a newer version of workbench",
            found=current_version,
            supported=CURRENT_VERSION,
        )

    pending = [m for m in migrations if m[0] > current_version]
    if not pending:
        return current_version

    if current_version > 0 and before_migrate is not None:
        before_migrate(current_version, target)

    for version, description, migration_func in pending:
        logger.info(f"Running migration {version}: {description}")
        conn.execute("BEGIN IMMEDIATE")
        try:
            migration_func(conn)
            set_schema_version(conn, version)
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
        logger.info(f"Migration {version} completed")

    return pending[-1][0]
