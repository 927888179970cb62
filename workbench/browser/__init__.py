"""Browser Control interface and the helpers built on it."""

from .control import BrowserControl, BrowserTab, BrowserWindow
from .relay import FocusRelay, restorable_urls, restore_workspace, snapshot_windows

__all__ = [
    "BrowserControl",
    "BrowserTab",
    "BrowserWindow",
    "FocusRelay",
    "restorable_urls",
    "restore_workspace",
    "snapshot_windows",
]
