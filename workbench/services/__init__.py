"""Service modules for workbench."""

from .backup_service import BackupResult, BackupService

__all__ = ["BackupResult", "BackupService"]
