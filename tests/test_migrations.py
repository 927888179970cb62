"""Tests for the schema migration system."""

import sqlite3

import pytest

from workbench.config.constants import DEFAULT_UNSORTED_COLLECTION_ID, SCHEMA_VERSION
from workbench.database import Store
from workbench.database.migrations import MIGRATIONS, check_versions, get_schema_version, run_migrations
from workbench.exceptions import SchemaVersionMismatchError


def _legacy_db(path, upto):
    """Create a database migrated only up to version ``upto``."""
    conn = sqlite3.connect(path, isolation_level=None)
    run_migrations(conn, migrations=[m for m in MIGRATIONS if m[0] <= upto])
    return conn


class TestRunMigrations:
    def test_fresh_database_reaches_current_version(self, tmp_path):
        conn = sqlite3.connect(tmp_path / "fresh.db", isolation_level=None)
        assert run_migrations(conn) == SCHEMA_VERSION
        assert get_schema_version(conn) == SCHEMA_VERSION
        conn.close()

    def test_running_twice_is_noop(self, tmp_path):
        conn = sqlite3.connect(tmp_path / "twice.db", isolation_level=None)
        run_migrations(conn)
        assert run_migrations(conn) == SCHEMA_VERSION
        versions = [r[0] for r in conn.execute("SELECT version FROM schema_version")]
        assert versions == [1, 2, 3]
        conn.close()

    def test_hook_not_called_for_fresh_file(self, tmp_path):
        calls = []
        conn = sqlite3.connect(tmp_path / "hook.db", isolation_level=None)
        run_migrations(conn, before_migrate=lambda old, new: calls.append((old, new)))
        assert calls == []
        conn.close()

    def test_failed_migration_rolls_back(self, tmp_path):
        def broken(conn):
            conn.execute("CREATE TABLE half_done (id INTEGER)")
            raise sqlite3.OperationalError("boom")

        conn = sqlite3.connect(tmp_path / "broken.db", isolation_level=None)
        with pytest.raises(sqlite3.OperationalError):
            run_migrations(conn, migrations=MIGRATIONS[:1] + [(2, "broken", broken)])
        assert get_schema_version(conn) == 1
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert "half_done" not in tables
        conn.close()


class TestLegacyUpgrade:
    def test_v2_items_move_to_membership_table(self, tmp_path):
        path = tmp_path / "legacy.db"
        conn = _legacy_db(path, 2)
        conn.execute("INSERT INTO collections (id, name, created_at) VALUES ('c1', 'Old', 1)")
        conn.execute(
            "INSERT INTO items (id, title, url, collection_id, created_at) VALUES ('i1', 'A', 'https://a', 'c1', 10)"
        )
        conn.execute("INSERT INTO items (id, title, created_at) VALUES ('i2', 'B', 20)")
        conn.close()

        store = Store(path, backup_dir=tmp_path / "backups").open()

        assert store.get_item("i1").collection_ids == ["c1"]
        assert store.get_item("i1").updated_at == 10
        assert store.get_item("i2").collection_ids == [DEFAULT_UNSORTED_COLLECTION_ID]
        assert store.get_collection("c1").project_ids == ["project_all"]

    def test_pre_migration_backup_taken(self, tmp_path):
        path = tmp_path / "legacy.db"
        _legacy_db(path, 2).close()

        store = Store(path, backup_dir=tmp_path / "backups").open()

        backups = store.backups.list_backups()
        assert len(backups) == 1
        assert "pre-migration" in backups[0].name

    def test_newer_file_refused(self, tmp_path):
        path = tmp_path / "future.db"
        conn = _legacy_db(path, SCHEMA_VERSION)
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION + 1,))
        conn.close()

        with pytest.raises(SchemaVersionMismatchError):
            Store(path, backup_dir=tmp_path / "backups").open()


def test_schema_version_must_match_last_migration():
    assert check_versions(MIGRATIONS, SCHEMA_VERSION) == SCHEMA_VERSION
    with pytest.raises(RuntimeError):
        check_versions(MIGRATIONS, SCHEMA_VERSION + 1)
