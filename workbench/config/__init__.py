"""Configuration for workbench."""

from .settings import get_backup_dir, get_db_path, get_layout_dir

__all__ = ["get_backup_dir", "get_db_path", "get_layout_dir"]
