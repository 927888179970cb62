"""
Translates pointer events on tab strips into placement engine calls.

The controller holds only transient drag state; everything durable lives in
the engine. It has no widget dependencies so it can be driven from Textual
mouse handlers, key bindings or tests alike.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..placement.engine import PaneId, PlacementEngine

logger = logging.getLogger(__name__)


@dataclass
class DragState:
    tab_id: Optional[str] = None
    over_pane: Optional[PaneId] = None
    over_index: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.tab_id is not None

    def clear(self) -> None:
        self.tab_id = None
        self.over_pane = None
        self.over_index = None


class DragController:
    def __init__(self, engine: PlacementEngine):
        self.engine = engine
        self.state = DragState()

    def drag_start(self, tab_id: str) -> bool:
        """Begin dragging ``tab_id``. Tabs that are not open cannot be dragged."""
        if self.engine.locate(tab_id) is None:
            self.state.clear()
            return False
        self.state = DragState(tab_id=tab_id)
        return True

    def drag_over(self, pane: PaneId, index: Optional[int] = None) -> bool:
        """Record the hover target; returns whether a drop here would be accepted."""
        if not self.state.active:
            return False
        self.state.over_pane = PaneId(pane)
        self.state.over_index = index
        return True

    def drop(self, pane: Optional[PaneId] = None, index: Optional[int] = None) -> Optional[PaneId]:
        """Finish the drag onto ``pane`` (defaults to the last hover target).

        Dropping on a tab strip position reorders; dropping on a pane body
        (no index) moves the tab to the end of that pane.

        Returns:
            The pane now holding the tab, or None if nothing was dragged.
        """
        if not self.state.active:
            return None
        tab_id = self.state.tab_id
        target = PaneId(pane) if pane is not None else self.state.over_pane
        if index is None and pane is None:
            index = self.state.over_index
        self.state.clear()

        if target is None:
            return self.engine.locate(tab_id)
        if index is None:
            self.engine.move_tab(tab_id, target)
        else:
            self.engine.reorder_tab(tab_id, target, index)
        logger.debug(f"Dropped {tab_id} on {target.value} at {index}")
        return self.engine.locate(tab_id)

    def cancel(self) -> None:
        self.state.clear()

    def click(self, tab_id: str) -> None:
        self.engine.select_tab(tab_id)

    def close_clicked(self, tab_id: str) -> None:
        if self.state.tab_id == tab_id:
            self.state.clear()
        self.engine.close_tab(tab_id)
