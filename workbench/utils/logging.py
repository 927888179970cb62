"""Logging setup for workbench.

Modules use the standard pattern:

    import logging
    logger = logging.getLogger(__name__)

and the CLI/TUI entry points call `setup_logging()` once. The TUI logs to a
file only so log records never draw over the terminal UI.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Max log file size: 5MB, keep 2 backups
_MAX_LOG_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 2

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``workbench`` logger hierarchy.

    Args:
        verbose: Lower the stderr threshold to DEBUG.
        log_file: Also write INFO+ records to this rotating file.
        console: Attach the stderr handler (disabled for the TUI).

    Returns:
        The configured package logger.
    """
    from ..config.settings import get_env_var

    root = logging.getLogger("workbench")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)
    root.setLevel(logging.DEBUG)

    if console:
        stream = logging.StreamHandler(sys.stderr)
        level_name = "DEBUG" if verbose else (get_env_var("WORKBENCH_LOG_LEVEL", validate=False) or "WARNING")
        stream.setLevel(getattr(logging, level_name.upper(), logging.WARNING))
        stream.setFormatter(formatter)
        root.addHandler(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=_MAX_LOG_BYTES, backupCount=_BACKUP_COUNT
        )
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    return root
