"""Pane/tab placement for the workbench view."""

from .engine import PANE_LABELS, PANE_ORDER, PaneId, PaneState, PlacementEngine, SplitKind
from .tabs import Tab, TabKind, collection_tab, item_tab, system_tab

__all__ = [
    "PANE_LABELS",
    "PANE_ORDER",
    "PaneId",
    "PaneState",
    "PlacementEngine",
    "SplitKind",
    "Tab",
    "TabKind",
    "collection_tab",
    "item_tab",
    "system_tab",
]
