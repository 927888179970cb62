"""
Textual workbench: item list on the left, up to four tab panes on the right.

The app owns a ``PlacementEngine`` and a ``DragController``; every key
binding turns into an engine call followed by a repaint. Display data is
re-read from the store on each refresh, so a failed store write simply
leaves the previous data on screen.
"""

import logging
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Footer, Static

from ..config.constants import ALL_PROJECTS_ID
from ..database.store import Store
from ..exceptions import StorageError
from ..models.types import Collection, Item
from ..placement import PANE_LABELS, PANE_ORDER, PaneId, PlacementEngine, SplitKind, item_tab
from .display import resolve_tab_display
from .drag_controller import DragController
from .layout_cache import LayoutCache, LayoutState

logger = logging.getLogger(__name__)


def _pane_dom_id(pane_id: PaneId) -> str:
    return f"pane-{pane_id.value}"


class PaneWidget(Vertical):
    """One pane: a tab strip over the active tab's body."""

    DEFAULT_CSS = """
    PaneWidget {
        border: round $primary-darken-2;
        height: 1fr;
    }

    PaneWidget.focused-pane {
        border: round $accent;
    }

    PaneWidget .tab-strip {
        height: 1;
        background: $boost;
    }

    PaneWidget .tab-body {
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, pane_id: PaneId):
        super().__init__(id=_pane_dom_id(pane_id))
        self.pane_id = pane_id
        self.border_title = PANE_LABELS[pane_id]

    def compose(self) -> ComposeResult:
        yield Static("", classes="tab-strip")
        yield Static("", classes="tab-body")

    def paint(self, strip: str, body: str) -> None:
        self.query_one(".tab-strip", Static).update(strip)
        self.query_one(".tab-body", Static).update(body)


class WorkbenchApp(App):
    """Browse a project's items and arrange them across panes."""

    CSS = """
    #item-list {
        width: 32;
        border-right: solid $primary;
    }

    #main-column, #right-column {
        width: 1fr;
    }

    #status-bar {
        height: 1;
        background: $panel;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("enter", "open_in('primary')", "Open"),
        Binding("2", "open_in('secondary')", "Open below"),
        Binding("3", "open_in('rightPrimary')", "Open right"),
        Binding("4", "open_in('rightSecondary')", "Open right below"),
        Binding("x", "close_tab", "Close tab"),
        Binding("o", "close_others", "Close others", show=False),
        Binding("m", "move_tab", "Move"),
        Binding("s", "toggle_split('main')", "Split"),
        Binding("S", "toggle_split('right')", "Split right"),
        Binding("r", "toggle_right", "Right pane"),
        Binding("]", "cycle_tab(1)", "Next tab", show=False),
        Binding("[", "cycle_tab(-1)", "Prev tab", show=False),
        Binding("tab", "cycle_pane", "Next pane", show=False, priority=True),
        Binding("f5", "refresh_data", "Reload", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, store: Store, project_id: str = ALL_PROJECTS_ID, layout_cache: Optional[LayoutCache] = None):
        super().__init__()
        self.store = store
        self.project_id = project_id
        self.layout_cache = layout_cache or LayoutCache(f"project-{project_id}")
        self.layout_state: LayoutState = self.layout_cache.load()
        self.engine = PlacementEngine(
            main_split=self.layout_state.main_split,
            right_split=self.layout_state.right_split,
            right_pane_visible=self.layout_state.right_pane_visible,
        )
        self.drag = DragController(self.engine)
        self.focused_pane = PaneId.PRIMARY
        self.items: list[Item] = []
        self.collections: list[Collection] = []

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield DataTable(id="item-list", cursor_type="row")
            with Vertical(id="main-column"):
                yield PaneWidget(PaneId.PRIMARY)
                yield PaneWidget(PaneId.SECONDARY)
            with Vertical(id="right-column"):
                yield PaneWidget(PaneId.RIGHT_PRIMARY)
                yield PaneWidget(PaneId.RIGHT_SECONDARY)
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#item-list", DataTable)
        table.styles.width = self.layout_state.list_width
        self.query_one("#right-column").styles.width = self.layout_state.right_pane_width
        table.add_columns("Title", "Kind")
        self.action_refresh_data()
        table.focus()

    # ── Data ──────────────────────────────────────────────────────────

    def action_refresh_data(self) -> None:
        try:
            view = self.store.get_project_view(self.project_id)
        except StorageError as e:
            logger.error(f"Failed to load project {self.project_id}: {e}")
            self.set_status(f"[red]Load failed: {e.message}[/red]")
            return
        self.items = view.items
        self.collections = view.collections

        table = self.query_one("#item-list", DataTable)
        table.clear()
        for item in self.items:
            table.add_row(item.title or item.url or "(untitled)", "note" if item.is_note else "link", key=item.id)
        self.set_status(f"{view.project.name}: {len(self.items)} item(s)")
        self.repaint()

    def selected_item(self) -> Optional[Item]:
        table = self.query_one("#item-list", DataTable)
        if not self.items or table.cursor_row is None or table.cursor_row >= len(self.items):
            return None
        return self.items[table.cursor_row]

    # ── Painting ──────────────────────────────────────────────────────

    def set_status(self, message: str) -> None:
        self.query_one("#status-bar", Static).update(message)

    def repaint(self) -> None:
        for pane_id in PANE_ORDER:
            widget = self.query_one(f"#{_pane_dom_id(pane_id)}", PaneWidget)
            widget.display = self.engine.is_reachable(pane_id)
            widget.set_class(pane_id == self.focused_pane, "focused-pane")

            state = self.engine.pane(pane_id)
            labels = []
            for tab in state.tabs:
                title = resolve_tab_display(tab, self.items, self.collections).title
                labels.append(f"[reverse] {title} [/reverse]" if tab.id == state.active_tab_id else f" {title} ")
            active = state.active_tab
            body = resolve_tab_display(active, self.items, self.collections).body if active else "[dim]No tab open[/dim]"
            widget.paint("│".join(labels), body)

        self.query_one("#right-column").display = self.engine.right_pane_visible
        self._save_layout()

    def _save_layout(self) -> None:
        self.layout_state.main_split = self.engine.main_split
        self.layout_state.right_split = self.engine.right_split
        self.layout_state.right_pane_visible = self.engine.right_pane_visible
        self.layout_cache.save(self.layout_state)

    # ── Actions ───────────────────────────────────────────────────────

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        event.stop()
        self.action_open_in(PaneId.PRIMARY.value)

    def action_open_in(self, pane: str) -> None:
        item = self.selected_item()
        if item is None:
            return
        shown_in = self.engine.open_tab(item_tab(item.id, item.title), PaneId(pane))
        self.focused_pane = shown_in
        self.repaint()

    def _active_tab_id(self) -> Optional[str]:
        return self.engine.pane(self.focused_pane).active_tab_id

    def action_close_tab(self) -> None:
        tab_id = self._active_tab_id()
        if tab_id:
            self.drag.close_clicked(tab_id)
            self.repaint()

    def action_close_others(self) -> None:
        tab_id = self._active_tab_id()
        if tab_id:
            self.engine.close_other_tabs(tab_id)
            self.repaint()

    def action_move_tab(self) -> None:
        """Move the focused pane's active tab to the next available pane."""
        tab_id = self._active_tab_id()
        if tab_id is None:
            return
        targets = [p for p in self.engine.available_panes() if p != self.focused_pane] or [PaneId.SECONDARY]
        self.drag.drag_start(tab_id)
        self.focused_pane = self.drag.drop(targets[0]) or self.focused_pane
        self.repaint()

    def action_toggle_split(self, which: str) -> None:
        self.engine.toggle_split(SplitKind(which))
        if not self.engine.is_reachable(self.focused_pane):
            self.focused_pane = PaneId.PRIMARY if which == "main" else PaneId.RIGHT_PRIMARY
        self.repaint()

    def action_toggle_right(self) -> None:
        self.engine.set_right_pane_visible(not self.engine.right_pane_visible)
        if not self.engine.is_reachable(self.focused_pane):
            self.focused_pane = PaneId.PRIMARY
        self.repaint()

    def action_cycle_tab(self, step: int) -> None:
        state = self.engine.pane(self.focused_pane)
        if not state.tabs:
            return
        ids = state.tab_ids
        current = ids.index(state.active_tab_id) if state.active_tab_id in ids else 0
        self.drag.click(ids[(current + step) % len(ids)])
        self.repaint()

    def action_cycle_pane(self) -> None:
        panes = self.engine.available_panes()
        current = panes.index(self.focused_pane) if self.focused_pane in panes else -1
        self.focused_pane = panes[(current + 1) % len(panes)]
        self.repaint()


def run_app(store: Store, project_id: str = ALL_PROJECTS_ID) -> None:
    WorkbenchApp(store, project_id).run()
