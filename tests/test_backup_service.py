"""Tests for BackupService: exports, database backups and retention."""

import gzip
import sqlite3
from datetime import datetime, timedelta, timezone

from workbench.config.constants import BACKUP_PREFIX
from workbench.services.backup_service import BackupService


def _make_db(path):
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    conn.commit()
    conn.close()


def _touch_backup(backup_dir, days_ago):
    stamp = (datetime.now(tz=timezone.utc) - timedelta(days=days_ago)).strftime("%Y-%m-%d_%H%M%S_%f")
    path = backup_dir / f"{BACKUP_PREFIX}manual-{stamp}.json"
    path.write_text("{}")
    return path


class TestWriteExport:
    def test_plain(self, tmp_path):
        service = BackupService(tmp_path / "db", tmp_path / "b", compress=False)
        path = service.write_export('{"version": 3}', reason="manual")
        assert path.name.startswith(f"{BACKUP_PREFIX}manual-")
        assert path.suffix == ".json"
        assert service.read_backup(path) == '{"version": 3}'

    def test_compressed(self, tmp_path):
        service = BackupService(tmp_path / "db", tmp_path / "b", compress=True)
        path = service.write_export('{"version": 3}')
        assert path.name.endswith(".json.gz")
        with gzip.open(path, "rb") as f:
            assert f.read() == b'{"version": 3}'
        assert service.read_backup(path) == '{"version": 3}'


class TestDatabaseBackup:
    def test_copies_database(self, tmp_path):
        db = tmp_path / "src.db"
        _make_db(db)
        result = BackupService(db, tmp_path / "b", compress=False).create_database_backup()
        assert result.success
        conn = sqlite3.connect(result.path)
        assert conn.execute("SELECT x FROM t").fetchone()[0] == 42
        conn.close()

    def test_compressed_copy(self, tmp_path):
        db = tmp_path / "src.db"
        _make_db(db)
        result = BackupService(db, tmp_path / "b", compress=True).create_database_backup()
        assert result.success
        assert result.path.name.endswith(".db.gz")
        assert not result.path.with_suffix("").exists()

    def test_failure_reported_not_raised(self, tmp_path):
        not_a_database = tmp_path / "dir.db"
        not_a_database.mkdir()
        result = BackupService(not_a_database, tmp_path / "b", compress=False).create_database_backup()
        assert not result.success
        assert result.path is None


class TestRetention:
    def test_list_newest_first(self, tmp_path):
        backup_dir = tmp_path / "b"
        backup_dir.mkdir()
        old = _touch_backup(backup_dir, 3)
        new = _touch_backup(backup_dir, 1)
        service = BackupService(tmp_path / "db", backup_dir)
        assert service.list_backups() == [new, old]

    def test_prune_keeps_recent_and_one_per_old_bucket(self, tmp_path):
        backup_dir = tmp_path / "b"
        backup_dir.mkdir()
        recent = [_touch_backup(backup_dir, d) for d in (0, 1, 6)]
        ancient = _touch_backup(backup_dir, 400)
        service = BackupService(tmp_path / "db", backup_dir, compress=False)

        pruned = service._prune_old_backups()

        assert pruned == 1
        assert not ancient.exists()
        assert all(p.exists() for p in recent)

    def test_unparseable_names_are_kept(self, tmp_path):
        backup_dir = tmp_path / "b"
        backup_dir.mkdir()
        odd = backup_dir / f"{BACKUP_PREFIX}handmade.json"
        odd.write_text("{}")
        _touch_backup(backup_dir, 400)
        BackupService(tmp_path / "db", backup_dir)._prune_old_backups()
        assert odd.exists()


def test_compression_follows_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("WORKBENCH_BACKUP_COMPRESS", "true")
    assert BackupService(tmp_path / "db", tmp_path / "b").compress is True
    monkeypatch.setenv("WORKBENCH_BACKUP_COMPRESS", "0")
    assert BackupService(tmp_path / "db", tmp_path / "b").compress is False
