"""
Workbench Database Package

Organized database operations split into focused modules:
- connection: Database connection management
- migrations: Database schema migrations
- items / collections / projects / workspaces: per-entity CRUD on a connection
- portability: export document format, verification and legacy upgrades
- store: the ``Store`` context object tying it all together
"""

import threading
from typing import Optional

from .connection import DatabaseConnection
from .portability import VerifyResult
from .store import Store

_store: Optional[Store] = None
_store_lock = threading.Lock()


def get_store() -> Store:
    """Return the process-wide store, opening it on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = Store().open()
    return _store


def reset_store() -> None:
    """Forget the process-wide store (tests point WORKBENCH_DB elsewhere)."""
    global _store
    with _store_lock:
        _store = None


__all__ = [
    "DatabaseConnection",
    "Store",
    "VerifyResult",
    "get_store",
    "reset_store",
]
