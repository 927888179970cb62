"""Pilot tests for the Textual workbench."""

from __future__ import annotations

import pytest

from workbench.models.types import NewItem
from workbench.placement import PaneId
from workbench.ui.app import WorkbenchApp
from workbench.ui.layout_cache import LayoutCache


def _app(store, tmp_path) -> WorkbenchApp:
    return WorkbenchApp(store, layout_cache=LayoutCache("test-view", layout_dir=tmp_path / "layouts"))


@pytest.fixture
def two_items(store):
    store.add_item(NewItem(title="First", url="https://first.example"))
    store.add_item(NewItem(title="Second", notes="a note"))
    return store


class TestWorkbenchApp:
    @pytest.mark.asyncio
    async def test_lists_items(self, two_items, tmp_path) -> None:
        async with _app(two_items, tmp_path).run_test(size=(140, 40)) as pilot:
            await pilot.pause()
            assert len(pilot.app.items) == 2
            assert pilot.app.engine.pane(PaneId.PRIMARY).is_empty

    @pytest.mark.asyncio
    async def test_enter_opens_selected_item(self, two_items, tmp_path) -> None:
        async with _app(two_items, tmp_path).run_test(size=(140, 40)) as pilot:
            await pilot.pause()
            await pilot.press("enter")
            await pilot.pause()
            selected = pilot.app.items[0]
            assert pilot.app.engine.pane(PaneId.PRIMARY).tab_ids == [f"item:{selected.id}"]

    @pytest.mark.asyncio
    async def test_split_move_and_close(self, two_items, tmp_path) -> None:
        async with _app(two_items, tmp_path).run_test(size=(140, 40)) as pilot:
            await pilot.pause()
            engine = pilot.app.engine
            await pilot.press("enter")
            await pilot.press("down", "2")
            await pilot.pause()
            assert engine.main_split is True
            assert len(engine.pane(PaneId.SECONDARY).tabs) == 1

            await pilot.press("s")
            await pilot.pause()
            assert engine.main_split is False
            assert len(engine.pane(PaneId.PRIMARY).tabs) == 2

            await pilot.press("x", "x")
            await pilot.pause()
            assert len(engine) == 0

    @pytest.mark.asyncio
    async def test_layout_flags_saved(self, two_items, tmp_path) -> None:
        async with _app(two_items, tmp_path).run_test(size=(140, 40)) as pilot:
            await pilot.pause()
            await pilot.press("r")
            await pilot.pause()

        state = LayoutCache("test-view", layout_dir=tmp_path / "layouts").load()
        assert state.right_pane_visible is True
        assert state.main_split is False

    @pytest.mark.asyncio
    async def test_reopening_focuses_existing_tab(self, two_items, tmp_path) -> None:
        async with _app(two_items, tmp_path).run_test(size=(140, 40)) as pilot:
            await pilot.pause()
            await pilot.press("enter", "3")
            await pilot.pause()
            engine = pilot.app.engine
            assert len(engine) == 1
            assert engine.right_pane_visible is False
