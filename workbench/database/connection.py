"""
Database connection management for workbench
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..config.settings import get_db_path
from ..exceptions import StorageError, StorageIOError
from . import migrations

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """SQLite connection manager for one store file.

    Every write goes through ``transaction()``, which holds the instance's
    write lock and wraps the work in a single ``BEGIN IMMEDIATE`` transaction,
    so a multi-record mutation is either fully applied or not at all.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path is not None else get_db_path()
        self._write_lock = threading.RLock()
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly below.
        conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a read connection with context manager"""
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageIOError("Failed to open database", path=str(self.db_path)) from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageIOError(f"Database read failed: {e}", path=str(self.db_path)) from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block as one durable unit of work.

        Store errors raised inside the block roll back and propagate as-is;
        sqlite/OS errors roll back and are re-raised as StorageIOError.
        """
        with self._write_lock:
            try:
                conn = self._connect()
            except sqlite3.Error as e:
                raise StorageIOError("Failed to open database", path=str(self.db_path)) from e
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
            except StorageError:
                raise
            except (sqlite3.Error, OSError) as e:
                logger.error(f"Transaction rolled back: {e}")
                raise StorageIOError(f"Database write failed: {e}", path=str(self.db_path)) from e
            finally:
                conn.close()

    def ensure_schema(self, before_migrate: Optional[Callable[[int, int], None]] = None) -> int:
        """Bring the file up to the current schema version exactly once.

        Args:
            before_migrate: Called with (on_disk_version, target_version) before
                an existing database is upgraded, e.g. to take a file backup.

        Returns:
            The schema version after migrating.

        Raises:
            SchemaVersionMismatchError: The file was written by newer code.
        """
        with self._write_lock:
            if self._schema_ready:
                return migrations.CURRENT_VERSION
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = self._connect()
            except sqlite3.Error as e:
                raise StorageIOError("Failed to open database", path=str(self.db_path)) from e
            try:
                version = migrations.run_migrations(conn, before_migrate=before_migrate)
            except sqlite3.Error as e:
                raise StorageIOError(f"Migration failed: {e}", path=str(self.db_path)) from e
            finally:
                conn.close()
            self._schema_ready = True
            return version
