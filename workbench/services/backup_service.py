"""Backup service for the workbench store.

Writes JSON safety exports (before an import) and SQLite file copies (before
a schema migration), optionally gzip-compressed, and applies a tiered
retention policy to old backups.
"""

from __future__ import annotations

import gzip
import logging
import re
import shutil
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ..config.constants import (
    BACKUP_DAILY_DAYS,
    BACKUP_MONTHLY_DAYS,
    BACKUP_PREFIX,
    BACKUP_WEEKLY_DAYS,
)
from ..config.settings import backup_compression_enabled, get_backup_dir

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%d_%H%M%S_%f"
_TIMESTAMP_RE = re.compile(r"(\d{4}-\d{2}-\d{2}_\d{6}_\d{6})")


@dataclass
class BackupResult:
    """Result of a backup operation."""

    success: bool
    path: Path | None
    size_bytes: int
    duration_seconds: float
    pruned_count: int
    message: str


class BackupService:
    """Manages safety exports and database file backups."""

    def __init__(
        self,
        db_path: Path,
        backup_dir: Path | None = None,
        retention: bool = True,
        compress: bool | None = None,
    ) -> None:
        self.db_path = db_path
        self.backup_dir = backup_dir or get_backup_dir()
        self.retention = retention
        self.compress = backup_compression_enabled() if compress is None else compress

    def _target_path(self, reason: str, suffix: str) -> Path:
        timestamp = datetime.now(tz=timezone.utc).strftime(_TIMESTAMP_FORMAT)
        return self.backup_dir / f"{BACKUP_PREFIX}{reason}-{timestamp}{suffix}"

    def write_export(self, document: str, reason: str = "manual") -> Path:
        """Persist an export document and return its path.

        Raises:
            OSError: The backup could not be written. Partial files are removed.
        """
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        path = self._target_path(reason, ".json.gz" if self.compress else ".json")
        data = document.encode("utf-8")
        try:
            if self.compress:
                with gzip.open(path, "wb") as f_out:
                    f_out.write(data)
            else:
                path.write_bytes(data)
        except OSError:
            path.unlink(missing_ok=True)
            raise

        logger.info(f"Wrote safety export: {path.name}")
        if self.retention:
            self._prune_old_backups()
        return path

    def create_database_backup(self, reason: str = "pre-migration") -> BackupResult:
        """Copy the SQLite file using the backup API (atomic, WAL-safe)."""
        start = time.monotonic()
        backup_path = self._target_path(reason, ".db")
        gz_path = backup_path.with_suffix(".db.gz")

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            src = sqlite3.connect(self.db_path)
            dst = sqlite3.connect(backup_path)
            try:
                src.backup(dst)
            finally:
                dst.close()
                src.close()

            if self.compress:
                with open(backup_path, "rb") as f_in, gzip.open(gz_path, "wb") as f_out:
                    shutil.copyfileobj(f_in, f_out)
                backup_path.unlink()
                backup_path = gz_path

            pruned = self._prune_old_backups() if self.retention else 0
            logger.info(f"Database backup created: {backup_path.name}")
            return BackupResult(
                success=True,
                path=backup_path,
                size_bytes=backup_path.stat().st_size,
                duration_seconds=time.monotonic() - start,
                pruned_count=pruned,
                message=f"Backup created: {backup_path.name}",
            )
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Database backup failed: {e}")
            backup_path.unlink(missing_ok=True)
            gz_path.unlink(missing_ok=True)
            return BackupResult(
                success=False,
                path=None,
                size_bytes=0,
                duration_seconds=time.monotonic() - start,
                pruned_count=0,
                message=f"Backup failed: {e}",
            )

    def list_backups(self) -> list[Path]:
        """List all backup files, newest first."""
        if not self.backup_dir.exists():
            return []
        return sorted(
            self.backup_dir.glob(f"{BACKUP_PREFIX}*"),
            key=lambda p: self._parse_backup_date(p) or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )

    def read_backup(self, path: Path) -> str:
        """Return the text of a JSON export, decompressing if needed."""
        if path.suffix == ".gz":
            with gzip.open(path, "rb") as f_in:
                return f_in.read().decode("utf-8")
        return path.read_text(encoding="utf-8")

    def _parse_backup_date(self, path: Path) -> datetime | None:
        """Extract the timestamp from names like workbench-backup-before-import-2026-02-28_143022_000123.json.gz."""
        match = _TIMESTAMP_RE.search(path.name)
        if not match:
            return None
        try:
            return datetime.strptime(match.group(1), _TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            return None

    def _prune_old_backups(self) -> int:
        """Apply tiered retention.

        Keeps:
        - All backups from the last BACKUP_DAILY_DAYS days
        - 1 per week up to BACKUP_WEEKLY_DAYS (oldest in each week)
        - 1 per month up to BACKUP_MONTHLY_DAYS (oldest in each month)
        - Deletes everything older
        """
        backups = self.list_backups()
        if len(backups) <= 1:
            return 0

        now = datetime.now(tz=timezone.utc)
        keep: set[Path] = set()
        dated_backups: list[tuple[Path, datetime]] = []

        for backup in backups:
            dt = self._parse_backup_date(backup)
            if dt is None:
                keep.add(backup)  # Keep unparseable files
                continue
            dated_backups.append((backup, dt))

        daily_cutoff = now - timedelta(days=BACKUP_DAILY_DAYS)
        weekly_cutoff = now - timedelta(days=BACKUP_WEEKLY_DAYS)
        monthly_cutoff = now - timedelta(days=BACKUP_MONTHLY_DAYS)

        buckets: dict[str, list[tuple[Path, datetime]]] = {}
        for path, dt in dated_backups:
            if dt >= daily_cutoff:
                keep.add(path)
            elif dt >= weekly_cutoff:
                buckets.setdefault(dt.strftime("W%Y-%W"), []).append((path, dt))
            elif dt >= monthly_cutoff:
                buckets.setdefault(dt.strftime("M%Y-%m"), []).append((path, dt))

        for entries in buckets.values():
            oldest = min(entries, key=lambda x: x[1])
            keep.add(oldest[0])

        pruned = 0
        for path, _ in dated_backups:
            if path not in keep:
                try:
                    path.unlink()
                    pruned += 1
                    logger.info(f"Pruned old backup: {path.name}")
                except OSError as e:
                    logger.warning(f"Failed to prune {path.name}: {e}")

        return pruned
