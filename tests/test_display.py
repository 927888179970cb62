"""Tests for resolving a tab's display data from store snapshots."""

from workbench.models.types import Collection, Item
from workbench.placement import Tab, TabKind, collection_tab, item_tab, system_tab
from workbench.ui.display import resolve_tab_display

COLLECTIONS = [Collection(id="c1", name="Reading", primary_project_id="project_all")]
ITEMS = [
    Item(id="i1", title="Docs", url="https://docs.example", collection_ids=["c1"], tags=["ref"], notes="read me"),
    Item(id="i2", title="Idea", collection_ids=["c1"]),
]


def test_item_tab_uses_fresh_title():
    display = resolve_tab_display(item_tab("i1", "stale"), ITEMS, COLLECTIONS)
    assert display.title == "Docs"
    assert "https://docs.example" in display.body
    assert "Reading" in display.body
    assert "read me" in display.body
    assert not display.missing


def test_deleted_item_keeps_last_title():
    display = resolve_tab_display(item_tab("gone", "Last seen"), ITEMS, COLLECTIONS)
    assert display.missing
    assert display.title == "Last seen"


def test_collection_tab_lists_members():
    display = resolve_tab_display(collection_tab("c1"), ITEMS, COLLECTIONS)
    assert display.title == "Reading (2)"
    assert "- Docs" in display.body
    assert "- Idea" in display.body


def test_system_tab():
    display = resolve_tab_display(system_tab("settings"), ITEMS, COLLECTIONS)
    assert display.title == "Settings"


def test_accepts_generators():
    tab = Tab(id="collection:c1", title="", kind=TabKind.COLLECTION, collection_id="c1")
    display = resolve_tab_display(tab, (i for i in ITEMS), iter(COLLECTIONS))
    assert display.title == "Reading (2)"
