"""
Pane/tab placement engine.

Tracks which tab is shown in which of four panes:

    +-----------+----------------+
    | primary   | rightPrimary   |
    +-----------+----------------+
    | secondary | rightSecondary |
    +-----------+----------------+

A tab id is open in at most one pane. The split/visibility flags only gate
which panes are reachable; they never own tabs. Every operation runs to
completion synchronously and is total: an unknown tab id is a no-op.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .tabs import Tab

logger = logging.getLogger(__name__)


class PaneId(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    RIGHT_PRIMARY = "rightPrimary"
    RIGHT_SECONDARY = "rightSecondary"


class SplitKind(str, Enum):
    MAIN = "main"
    RIGHT = "right"


PANE_ORDER: Tuple[PaneId, ...] = (
    PaneId.PRIMARY,
    PaneId.SECONDARY,
    PaneId.RIGHT_PRIMARY,
    PaneId.RIGHT_SECONDARY,
)

PANE_LABELS: Dict[PaneId, str] = {
    PaneId.PRIMARY: "Main (top)",
    PaneId.SECONDARY: "Main (bottom)",
    PaneId.RIGHT_PRIMARY: "Right (top)",
    PaneId.RIGHT_SECONDARY: "Right (bottom)",
}

_PRIMARY, _SECONDARY, _RIGHT_PRIMARY, _RIGHT_SECONDARY = range(4)

# (secondary index, primary index) merged when a split is turned off
_SPLIT_PAIRS: Dict[SplitKind, Tuple[int, int]] = {
    SplitKind.MAIN: (_SECONDARY, _PRIMARY),
    SplitKind.RIGHT: (_RIGHT_SECONDARY, _RIGHT_PRIMARY),
}


@dataclass
class _Pane:
    tabs: List[Tab] = field(default_factory=list)
    active_tab_id: Optional[str] = None

    def index_of(self, tab_id: str) -> int:
        for i, tab in enumerate(self.tabs):
            if tab.id == tab_id:
                return i
        return -1


@dataclass(frozen=True)
class PaneState:
    """Read-only snapshot of one pane for renderers and tests."""

    pane_id: PaneId
    tabs: Tuple[Tab, ...]
    active_tab_id: Optional[str]

    @property
    def tab_ids(self) -> List[str]:
        return [t.id for t in self.tabs]

    @property
    def active_tab(self) -> Optional[Tab]:
        for tab in self.tabs:
            if tab.id == self.active_tab_id:
                return tab
        return None

    @property
    def is_empty(self) -> bool:
        return not self.tabs


class PlacementEngine:
    """Per-view placement state. Not persisted; a new session starts empty."""

    def __init__(
        self,
        main_split: bool = False,
        right_split: bool = False,
        right_pane_visible: bool = False,
    ) -> None:
        self._panes: List[_Pane] = [_Pane() for _ in PANE_ORDER]
        self.main_split = main_split
        self.right_split = right_split
        self.right_pane_visible = right_pane_visible

    # ── Internal helpers ──────────────────────────────────────────────

    @staticmethod
    def _index(pane_id: PaneId) -> int:
        return PANE_ORDER.index(PaneId(pane_id))

    def _locate(self, tab_id: str) -> Tuple[int, int]:
        """Return (pane index, tab index) or (-1, -1)."""
        for p, pane in enumerate(self._panes):
            i = pane.index_of(tab_id)
            if i >= 0:
                return p, i
        return -1, -1

    def _apply_flags(self, index: int) -> None:
        if index == _SECONDARY:
            self.main_split = True
        elif index == _RIGHT_PRIMARY:
            self.right_pane_visible = True
        elif index == _RIGHT_SECONDARY:
            self.right_pane_visible = True
            self.right_split = True

    def _remove(self, p: int, i: int) -> Tab:
        """Remove the tab at (p, i) and reselect deterministically.

        When the active tab goes, the tab now at the same index becomes
        active, else the new last tab, else none.
        """
        pane = self._panes[p]
        tab = pane.tabs.pop(i)
        if pane.active_tab_id == tab.id:
            if not pane.tabs:
                pane.active_tab_id = None
            else:
                pane.active_tab_id = pane.tabs[min(i, len(pane.tabs) - 1)].id
        return tab

    # ── Mutations ─────────────────────────────────────────────────────

    def open_tab(self, tab: Tab, target: PaneId = PaneId.PRIMARY) -> PaneId:
        """Open ``tab`` in ``target`` or focus it where it already is.

        Returns:
            The pane that now shows the tab.
        """
        p, _ = self._locate(tab.id)
        if p >= 0:
            self._panes[p].active_tab_id = tab.id
            return PANE_ORDER[p]

        index = self._index(target)
        pane = self._panes[index]
        pane.tabs.append(tab)
        pane.active_tab_id = tab.id
        self._apply_flags(index)
        return PANE_ORDER[index]

    def close_tab(self, tab_id: str) -> Optional[Tab]:
        p, i = self._locate(tab_id)
        if p < 0:
            return None
        return self._remove(p, i)

    def move_tab(self, tab_id: str, dest: PaneId) -> None:
        p, i = self._locate(tab_id)
        if p < 0:
            return
        d = self._index(dest)
        if d == p:
            self._panes[p].active_tab_id = tab_id
            return
        tab = self._remove(p, i)
        self._panes[d].tabs.append(tab)
        self._panes[d].active_tab_id = tab.id
        self._apply_flags(d)

    def reorder_tab(self, tab_id: str, dest: PaneId, index: int) -> None:
        """Drag-reorder within a pane, or move across panes to ``index``."""
        p, i = self._locate(tab_id)
        if p < 0:
            return
        d = self._index(dest)
        pane = self._panes[d]
        if d == p:
            tab = pane.tabs.pop(i)
            pane.tabs.insert(max(0, min(index, len(pane.tabs))), tab)
            return
        self.move_tab(tab_id, dest)
        tab = pane.tabs.pop()
        pane.tabs.insert(max(0, min(index, len(pane.tabs))), tab)

    def toggle_split(self, which: SplitKind) -> bool:
        """Flip a split. Turning it off merges the secondary pane back.

        Returns:
            The new value of the split flag.
        """
        which = SplitKind(which)
        turning_on = not (self.main_split if which is SplitKind.MAIN else self.right_split)
        if which is SplitKind.MAIN:
            self.main_split = turning_on
        else:
            self.right_split = turning_on
        if turning_on:
            return True

        src_index, dst_index = _SPLIT_PAIRS[which]
        src, dst = self._panes[src_index], self._panes[dst_index]
        present = {t.id for t in dst.tabs}
        for tab in src.tabs:
            if tab.id not in present:
                dst.tabs.append(tab)
                present.add(tab.id)
        if src.active_tab_id is not None:
            dst.active_tab_id = src.active_tab_id
        merged = len(src.tabs)
        src.tabs = []
        src.active_tab_id = None
        logger.debug(f"Merged {merged} tab(s) from {PANE_ORDER[src_index].value} into {PANE_ORDER[dst_index].value}")
        return False

    def select_tab(self, tab_id: str) -> None:
        p, _ = self._locate(tab_id)
        if p >= 0:
            self._panes[p].active_tab_id = tab_id

    def set_right_pane_visible(self, visible: bool) -> None:
        """Show or hide the right column. Hiding never closes its tabs."""
        self.right_pane_visible = visible

    def close_other_tabs(self, tab_id: str) -> List[Tab]:
        """Close every other tab in the pane holding ``tab_id``."""
        p, _ = self._locate(tab_id)
        if p < 0:
            return []
        pane = self._panes[p]
        closed = [t for t in pane.tabs if t.id != tab_id]
        pane.tabs = [t for t in pane.tabs if t.id == tab_id]
        pane.active_tab_id = tab_id
        return closed

    def update_tab_title(self, tab_id: str, title: str) -> None:
        p, i = self._locate(tab_id)
        if p < 0:
            return
        old = self._panes[p].tabs[i]
        self._panes[p].tabs[i] = Tab(
            id=old.id,
            title=title,
            kind=old.kind,
            item_id=old.item_id,
            collection_id=old.collection_id,
        )

    # ── Read helpers ──────────────────────────────────────────────────

    def pane(self, pane_id: PaneId) -> PaneState:
        index = self._index(pane_id)
        pane = self._panes[index]
        return PaneState(
            pane_id=PANE_ORDER[index],
            tabs=tuple(pane.tabs),
            active_tab_id=pane.active_tab_id,
        )

    def panes(self) -> List[PaneState]:
        return [self.pane(pid) for pid in PANE_ORDER]

    def find_tab(self, tab_id: str) -> Optional[Tab]:
        p, i = self._locate(tab_id)
        return self._panes[p].tabs[i] if p >= 0 else None

    def locate(self, tab_id: str) -> Optional[PaneId]:
        p, _ = self._locate(tab_id)
        return PANE_ORDER[p] if p >= 0 else None

    def is_reachable(self, pane_id: PaneId) -> bool:
        """Whether the renderer currently shows ``pane_id``."""
        index = self._index(pane_id)
        if index == _PRIMARY:
            return True
        if index == _SECONDARY:
            return self.main_split
        if index == _RIGHT_PRIMARY:
            return self.right_pane_visible
        return self.right_pane_visible and self.right_split

    def available_panes(self) -> List[PaneId]:
        """Panes offered by "Open in ..." menus."""
        return [pid for pid in PANE_ORDER if self.is_reachable(pid)]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "panes": {
                state.pane_id.value: {
                    "tabs": state.tab_ids,
                    "active": state.active_tab_id,
                }
                for state in self.panes()
            },
            "main_split": self.main_split,
            "right_split": self.right_split,
            "right_pane_visible": self.right_pane_visible,
        }

    def __len__(self) -> int:
        return sum(len(p.tabs) for p in self._panes)
