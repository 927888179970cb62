"""
Centralized constants for workbench.

Default ids, paths, schema version and UI/backup tuning values live here so
the store, the placement engine and the CLI agree on them.
"""

from pathlib import Path

# =============================================================================
# PATHS
# =============================================================================

WORKBENCH_CONFIG_DIR = Path.home() / ".config" / "workbench"
WORKBENCH_BACKUP_DIR = WORKBENCH_CONFIG_DIR / "backups"
WORKBENCH_LAYOUT_DIR = WORKBENCH_CONFIG_DIR / "layouts"
DB_FILENAME = "workbench.db"
TUI_LOG_FILENAME = "tui.log"

# =============================================================================
# SCHEMA
# =============================================================================

# Bump together with a new entry in database.migrations.MIGRATIONS
SCHEMA_VERSION = 3

# =============================================================================
# DEFAULT ENTITIES
# =============================================================================

DEFAULT_PROJECT_ID = "project_all"
DEFAULT_PROJECT_NAME = "All"
DEFAULT_COLLECTION_NAME = "Unsorted"
DEFAULT_COLLECTION_COLOR = "#3b82f6"

# Read-path only pseudo-project aggregating every collection and item
ALL_PROJECTS_ID = "__all_projects__"
ALL_PROJECTS_NAME = "All Projects"


def default_collection_id(project_id: str) -> str:
    """Deterministic id of a project's "Unsorted" collection."""
    return f"collection_{project_id}_unsorted"


DEFAULT_UNSORTED_COLLECTION_ID = default_collection_id(DEFAULT_PROJECT_ID)

# =============================================================================
# BACKUP RETENTION (in days)
# =============================================================================

BACKUP_DAILY_DAYS = 7  # keep everything from the last week
BACKUP_WEEKLY_DAYS = 28  # then one per week
BACKUP_MONTHLY_DAYS = 180  # then one per month
BACKUP_PREFIX = "workbench-backup-"

# =============================================================================
# BROWSER CONTROL
# =============================================================================

FOCUS_SETTLE_DELAY_SECONDS = 0.15

# =============================================================================
# UI LAYOUT DEFAULTS
# =============================================================================

DEFAULT_LIST_WIDTH = 32
DEFAULT_RIGHT_PANE_WIDTH = 42
DEFAULT_SPLIT_RATIO = 60  # percent for the top pane
MIN_SPLIT_RATIO = 15
MAX_SPLIT_RATIO = 85

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

ENV_VAR_DEFINITIONS = {
    "WORKBENCH_DB": {
        "description": "Path to the SQLite database (used by tests to isolate state)",
        "default": None,
        "valid_values": None,
    },
    "WORKBENCH_BACKUP_DIR": {
        "description": "Directory for safety exports and pre-migration backups",
        "default": None,
        "valid_values": None,
    },
    "WORKBENCH_BACKUP_COMPRESS": {
        "description": "Gzip safety exports before writing them",
        "default": "true",
        "valid_values": ["true", "false", "1", "0"],
    },
    "WORKBENCH_LOG_LEVEL": {
        "description": "Log level for the stderr handler",
        "default": "WARNING",
        "valid_values": ["DEBUG", "INFO", "WARNING", "ERROR"],
    },
}
