"""
The host browser's tab/window capability.

Workbench never talks to a browser directly; whoever embeds it supplies an
object satisfying ``BrowserControl``. Tab and window ids are live, host-side
ids and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class BrowserTab:
    id: int
    window_id: int
    url: str = ""
    title: str = ""
    fav_icon_url: Optional[str] = None
    active: bool = False


@dataclass(frozen=True)
class BrowserWindow:
    window_id: int
    tabs: tuple[BrowserTab, ...] = field(default_factory=tuple)
    focused: bool = False


@runtime_checkable
class BrowserControl(Protocol):
    """Operations the host browser must provide."""

    def list_windows(self) -> list[BrowserWindow]:
        """Every open window with its tabs, in the host's order."""
        ...

    def get_tab(self, tab_id: int) -> Optional[BrowserTab]:
        ...

    def focus_window(self, window_id: int) -> None:
        ...

    def focus_tab(self, tab_id: int) -> None:
        """Mark a tab active inside its window."""
        ...

    def close_tab(self, tab_id: int) -> None:
        ...

    def close_window(self, window_id: int) -> None:
        ...

    def create_window(self, urls: list[str]) -> Optional[int]:
        """Open a new window holding ``urls``; returns its id if known."""
        ...

    def create_tab(self, url: str, window_id: Optional[int] = None) -> Optional[int]:
        ...
