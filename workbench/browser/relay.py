"""
Helpers layered on ``BrowserControl``: the focus relay and workspace
snapshot/restore.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Optional

from ..config.constants import FOCUS_SETTLE_DELAY_SECONDS
from ..models.types import Workspace, WorkspaceTab, WorkspaceWindow
from .control import BrowserControl

logger = logging.getLogger(__name__)

RESTORABLE_SCHEMES = ("http://", "https://")


class FocusRelay:
    """Brings a tab's window to the front, then activates the tab.

    ``request_focus`` returns immediately; the work runs on a daemon thread
    and failures are only logged.
    """

    def __init__(self, control: BrowserControl, settle_delay: float = FOCUS_SETTLE_DELAY_SECONDS):
        self.control = control
        self.settle_delay = settle_delay

    def request_focus(self, tab_id: int) -> None:
        threading.Thread(
            target=self._focus, args=(tab_id,), name=f"focus-tab-{tab_id}", daemon=True
        ).start()

    def _focus(self, tab_id: int) -> None:
        try:
            tab = self.control.get_tab(tab_id)
            if tab is None:
                logger.warning(f"focus-tab: tab {tab_id} is gone")
                return
            self.control.focus_window(tab.window_id)
            self.control.focus_tab(tab_id)
            # Let the window manager catch up after switching desktops
            time.sleep(self.settle_delay)
        except Exception as e:
            logger.error(f"focus-tab failed for {tab_id}: {e}")


def snapshot_windows(control: BrowserControl) -> list[WorkspaceWindow]:
    """Capture open windows as URL-only workspace windows."""
    windows = []
    for number, window in enumerate(control.list_windows(), start=1):
        tabs = tuple(
            WorkspaceTab(url=tab.url, title=tab.title or None, fav_icon_url=tab.fav_icon_url)
            for tab in window.tabs
            if tab.url
        )
        windows.append(WorkspaceWindow(id=str(window.window_id), name=f"Window {number}", tabs=tabs))
    return windows


def restorable_urls(tabs: Iterable[WorkspaceTab]) -> list[str]:
    return [t.url for t in tabs if t.url.startswith(RESTORABLE_SCHEMES)]


def restore_workspace(
    control: BrowserControl,
    workspace: Workspace,
    window_ids: Optional[Iterable[str]] = None,
) -> int:
    """Open one browser window per saved window.

    Args:
        window_ids: Restrict to these saved windows; all when None.

    Returns:
        Number of windows created.
    """
    wanted = set(window_ids) if window_ids is not None else None
    created = 0
    for window in workspace.windows:
        if wanted is not None and window.id not in wanted:
            continue
        urls = restorable_urls(window.tabs)
        if not urls:
            logger.debug(f"Skipping window {window.id}: nothing restorable")
            continue
        try:
            control.create_window(urls)
            created += 1
        except Exception as e:
            logger.error(f"Failed to restore window {window.id} of '{workspace.name}': {e}")
    logger.info(f"Restored {created} window(s) from workspace '{workspace.name}'")
    return created
