"""Configuration utilities for workbench."""

import os
from pathlib import Path
from typing import List, Optional, Tuple

from .constants import (
    DB_FILENAME,
    ENV_VAR_DEFINITIONS,
    WORKBENCH_BACKUP_DIR,
    WORKBENCH_CONFIG_DIR,
    WORKBENCH_LAYOUT_DIR,
)


def get_db_path() -> Path:
    """Get the database path, respecting WORKBENCH_DB environment variable.

    When running tests, set WORKBENCH_DB to a temp file path to prevent
    tests from polluting the real database.
    """
    test_db = os.environ.get("WORKBENCH_DB")
    if test_db:
        return Path(test_db)

    WORKBENCH_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return WORKBENCH_CONFIG_DIR / DB_FILENAME


def get_backup_dir() -> Path:
    """Get the backup directory, respecting WORKBENCH_BACKUP_DIR."""
    override = os.environ.get("WORKBENCH_BACKUP_DIR")
    if override:
        return Path(override)
    return WORKBENCH_BACKUP_DIR


def get_layout_dir() -> Path:
    return WORKBENCH_LAYOUT_DIR


def backup_compression_enabled() -> bool:
    value = get_env_var("WORKBENCH_BACKUP_COMPRESS", validate=False) or "true"
    return value.lower() in ("true", "1")


def validate_env_var(name: str, value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a single environment variable value.

    Args:
        name: The environment variable name.
        value: The current value (or None if not set).

    Returns:
        Tuple of (is_valid, error_message).
    """
    if name not in ENV_VAR_DEFINITIONS:
        return True, None  # Unknown vars are always valid

    if value is None:
        return True, None

    valid_values = ENV_VAR_DEFINITIONS[name].get("valid_values")
    if valid_values is None:
        return True, None

    if value.lower() not in [v.lower() for v in valid_values]:
        return False, f"Invalid value '{value}' for {name}. Valid values: {valid_values}"

    return True, None


def validate_all_env_vars() -> List[str]:
    """Validate all workbench environment variables.

    Returns:
        List of error messages (empty if all valid).
    """
    errors = []
    for name in ENV_VAR_DEFINITIONS:
        is_valid, error = validate_env_var(name, os.environ.get(name))
        if not is_valid:
            errors.append(error)
    return errors


def get_env_var(name: str, validate: bool = True) -> Optional[str]:
    """Get an environment variable with optional validation.

    Raises:
        ConfigurationError: If validate=True and the value is invalid.
    """
    from ..exceptions import ConfigurationError

    value = os.environ.get(name)

    if validate and value is not None:
        is_valid, error = validate_env_var(name, value)
        if not is_valid:
            raise ConfigurationError(error, setting=name)

    if value is None and name in ENV_VAR_DEFINITIONS:
        return ENV_VAR_DEFINITIONS[name].get("default")

    return value

