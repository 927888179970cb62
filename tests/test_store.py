"""Tests for the Store: CRUD, cascades and validation."""

import json
import sqlite3

import pytest

from workbench.config.constants import (
    ALL_PROJECTS_ID,
    DEFAULT_COLLECTION_COLOR,
    DEFAULT_PROJECT_ID,
    DEFAULT_UNSORTED_COLLECTION_ID,
    default_collection_id,
)
from workbench.database import Store
from workbench.exceptions import NotFoundError, StorageError, StorageIOError, ValidationFailedError
from workbench.models.types import (
    CollectionPatch,
    ItemPatch,
    ItemSource,
    NewItem,
    ProjectPatch,
    WorkspacePatch,
    WorkspaceTab,
    WorkspaceWindow,
)


def _window(*urls):
    return WorkspaceWindow(id="1", name="Main", tabs=tuple(WorkspaceTab(url=u, title=u) for u in urls))


class TestDefaults:
    def test_fresh_store_has_default_project_and_unsorted(self, store):
        projects = store.get_all_projects()
        assert [p.id for p in projects] == [DEFAULT_PROJECT_ID]
        assert projects[0].is_default

        collections = store.get_all_collections()
        assert [c.id for c in collections] == [DEFAULT_UNSORTED_COLLECTION_ID]
        assert collections[0].name == "Unsorted"
        assert collections[0].color == DEFAULT_COLLECTION_COLOR
        assert collections[0].is_default

    def test_open_is_idempotent(self, store):
        store.open()
        store.open()
        assert len(store.get_all_projects()) == 1

    def test_reopening_same_file_keeps_data(self, tmp_path):
        path = tmp_path / "reopen.db"
        first = Store(path, backup_dir=tmp_path / "b").open()
        item_id = first.add_item(NewItem(title="kept"))
        second = Store(path, backup_dir=tmp_path / "b").open()
        assert second.get_item(item_id).title == "kept"


class TestItems:
    def test_add_item_without_collection_lands_in_unsorted(self, store):
        item_id = store.add_item(NewItem(title="Hello", url="https://example.com"))
        item = store.get_item(item_id)
        assert item.collection_ids == [DEFAULT_UNSORTED_COLLECTION_ID]
        assert item.created_at == item.updated_at
        assert item.source is ItemSource.MANUAL

    def test_add_item_for_project_uses_that_projects_unsorted(self, store):
        project_id = store.add_project("Work")
        item_id = store.add_item(NewItem(title="Draft"), project_id=project_id)
        assert store.get_item(item_id).collection_ids == [default_collection_id(project_id)]

    def test_add_item_needs_title_or_url(self, store):
        with pytest.raises(ValidationFailedError):
            store.add_item(NewItem(title="   "))
        assert store.get_all_items() == []

    def test_url_only_item_uses_url_as_title(self, store):
        item = store.get_item(store.add_item(NewItem(title="", url="https://a.example")))
        assert item.title == "https://a.example"

    def test_note_has_no_url(self, store):
        item = store.get_item(store.add_item(NewItem(title="Idea", notes="remember")))
        assert item.is_note

    def test_add_item_rejects_unknown_collection(self, store):
        with pytest.raises(ValidationFailedError):
            store.add_item(NewItem(title="x", collection_ids=["nope"]))
        assert store.get_all_items() == []

    def test_duplicate_collection_ids_are_collapsed(self, store):
        cid = store.add_collection("Reading")
        item = store.get_item(store.add_item(NewItem(title="x", collection_ids=[cid, cid])))
        assert item.collection_ids == [cid]

    def test_update_item_bumps_updated_at(self, store):
        item_id = store.add_item(NewItem(title="Old"))
        before = store.get_item(item_id)
        updated = store.update_item(item_id, ItemPatch(title="New", tags=["a", " b "]))
        assert updated.title == "New"
        assert updated.tags == ["a", "b"]
        assert updated.updated_at > before.updated_at
        assert updated.created_at == before.created_at
        assert store.get_item(item_id).title == "New"

    def test_updated_at_never_goes_backwards(self, store):
        future = 32503680000000  # year 3000
        item_id = store.add_item(NewItem(title="t", updated_at=future))
        assert store.update_item(item_id, ItemPatch(notes="n")).updated_at == future + 1

    def test_update_missing_item_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.update_item("missing", ItemPatch(title="x"))

    def test_update_to_empty_collections_falls_back_to_unsorted(self, store):
        cid = store.add_collection("Reading")
        item_id = store.add_item(NewItem(title="x", collection_ids=[cid]))
        updated = store.update_item(item_id, ItemPatch(collection_ids=[]))
        assert updated.collection_ids == [DEFAULT_UNSORTED_COLLECTION_ID]

    def test_update_cannot_blank_both_title_and_url(self, store):
        item_id = store.add_item(NewItem(title="t"))
        with pytest.raises(ValidationFailedError):
            store.update_item(item_id, ItemPatch(title=""))
        assert store.get_item(item_id).title == "t"

    def test_set_item_collection_is_single_select(self, store):
        a = store.add_collection("A")
        b = store.add_collection("B")
        item_id = store.add_item(NewItem(title="x", collection_ids=[a, b]))
        assert store.set_item_collection(item_id, b).collection_ids == [b]
        assert store.set_item_collection(item_id, None).collection_ids == [DEFAULT_UNSORTED_COLLECTION_ID]

    def test_delete_item_is_idempotent(self, store):
        item_id = store.add_item(NewItem(title="x"))
        store.delete_item(item_id)
        store.delete_item(item_id)
        assert store.get_item(item_id) is None
        assert store.get_items_by_collection(None) == []

    def test_get_items_by_collection(self, populated_store):
        store, ids = populated_store
        titles = sorted(i.title for i in store.get_items_by_collection(ids["reading"]))
        assert titles == ["X", "Y"]

    def test_search_is_case_insensitive_over_title_url_notes(self, store):
        store.add_item(NewItem(title="Python docs", url="https://docs.python.org"))
        store.add_item(NewItem(title="Other", notes="mentions PYTHON too"))
        store.add_item(NewItem(title="Unrelated"))
        assert sorted(i.title for i in store.search_items("python")) == ["Other", "Python docs"]

    def test_search_scoped_to_project(self, populated_store):
        store, ids = populated_store
        assert [i.title for i in store.search_items("", project_id=ids["project"])] == ["Z"]
        assert len(store.search_items("", project_id=ALL_PROJECTS_ID)) == 3


class TestCollections:
    def test_add_collection_defaults(self, store):
        col = store.get_collection(store.add_collection("Reading"))
        assert col.primary_project_id == DEFAULT_PROJECT_ID
        assert col.project_ids == [DEFAULT_PROJECT_ID]
        assert col.color == DEFAULT_COLLECTION_COLOR
        assert not col.is_default

    def test_empty_name_rejected(self, store):
        with pytest.raises(ValidationFailedError):
            store.add_collection("  ")
        cid = store.add_collection("Ok")
        with pytest.raises(ValidationFailedError):
            store.update_collection(cid, CollectionPatch(name=""))
        assert store.get_collection(cid).name == "Ok"

    def test_rename(self, store):
        cid = store.add_collection("Old")
        assert store.update_collection(cid, CollectionPatch(name="New")).name == "New"

    def test_update_missing_collection(self, store):
        with pytest.raises(NotFoundError):
            store.update_collection("missing", CollectionPatch(name="x"))

    def test_delete_reassigns_to_owning_projects_unsorted(self, populated_store):
        store, ids = populated_store
        moved = store.delete_collection(ids["reading"])
        assert moved == 2
        for key in ("x", "y"):
            assert store.get_item(ids[key]).collection_ids == [DEFAULT_UNSORTED_COLLECTION_ID]
        assert store.get_collection(ids["reading"]) is None
        assert len(store.get_all_items()) == 3

    def test_delete_keeps_other_memberships(self, store):
        a = store.add_collection("A")
        b = store.add_collection("B")
        item_id = store.add_item(NewItem(title="x", collection_ids=[a, b]))
        store.delete_collection(a)
        assert sorted(store.get_item(item_id).collection_ids) == sorted([b, DEFAULT_UNSORTED_COLLECTION_ID])

    def test_delete_in_other_project_uses_that_projects_default(self, populated_store):
        store, ids = populated_store
        store.delete_collection(ids["papers"])
        assert store.get_item(ids["z"]).collection_ids == [default_collection_id(ids["project"])]

    def test_delete_default_collection_rejected(self, store):
        with pytest.raises(ValidationFailedError):
            store.delete_collection(DEFAULT_UNSORTED_COLLECTION_ID)

    def test_delete_missing_collection_is_noop(self, store):
        assert store.delete_collection("missing") == 0

    def test_share_and_unshare(self, populated_store):
        store, ids = populated_store
        shared = store.share_collection(ids["reading"], ids["project"])
        assert ids["project"] in shared.project_ids
        view = store.get_project_view(ids["project"])
        assert ids["reading"] in [c.id for c in view.collections]
        assert {"X", "Y", "Z"} == {i.title for i in view.items}

        unshared = store.unshare_collection(ids["reading"], ids["project"])
        assert unshared.project_ids == [DEFAULT_PROJECT_ID]

    def test_cannot_unshare_primary_project(self, populated_store):
        store, ids = populated_store
        with pytest.raises(ValidationFailedError):
            store.unshare_collection(ids["reading"], DEFAULT_PROJECT_ID)


class TestProjects:
    def test_add_project_provisions_unsorted(self, store):
        project_id = store.add_project("Work")
        col = store.get_collection(default_collection_id(project_id))
        assert col is not None
        assert col.is_default
        assert col.primary_project_id == project_id

    def test_default_project_cannot_be_deleted(self, store):
        assert store.delete_project(DEFAULT_PROJECT_ID) is False
        assert store.get_project(DEFAULT_PROJECT_ID) is not None

    def test_all_projects_is_read_only(self, store):
        with pytest.raises(ValidationFailedError):
            store.delete_project(ALL_PROJECTS_ID)
        with pytest.raises(ValidationFailedError):
            store.update_project(ALL_PROJECTS_ID, ProjectPatch(name="x"))

    def test_delete_project_reassigns_everything(self, populated_store):
        store, ids = populated_store
        unsorted_item = store.add_item(NewItem(title="loose"), project_id=ids["project"])
        store.share_collection(ids["reading"], ids["project"])
        ws = store.add_workspace("ws", [_window("https://a.example")], project_id=ids["project"])

        assert store.delete_project(ids["project"]) is True

        assert store.get_project(ids["project"]) is None
        papers = store.get_collection(ids["papers"])
        assert papers.primary_project_id == DEFAULT_PROJECT_ID
        assert papers.project_ids == [DEFAULT_PROJECT_ID]
        assert store.get_collection(ids["reading"]).project_ids == [DEFAULT_PROJECT_ID]
        assert store.get_collection(default_collection_id(ids["project"])) is None
        assert store.get_item(unsorted_item).collection_ids == [DEFAULT_UNSORTED_COLLECTION_ID]
        assert store.get_workspace(ws).project_id is None

    def test_delete_missing_project_is_noop(self, store):
        assert store.delete_project("missing") is True

    def test_projects_newest_first(self, store):
        a = store.add_project("A")
        store.add_project("B")
        store.update_project(a, ProjectPatch(description="touched"))
        stamps = [p.updated_at for p in store.get_all_projects()]
        assert stamps == sorted(stamps, reverse=True)
        assert store.get_project(a).description == "touched"

    def test_project_view_for_all_projects(self, populated_store):
        store, _ = populated_store
        view = store.get_project_view(ALL_PROJECTS_ID)
        assert len(view.items) == 3
        assert len(view.collections) == len(store.get_all_collections())

    def test_project_view_counts(self, populated_store):
        store, ids = populated_store
        counts = store.get_project_view(DEFAULT_PROJECT_ID).item_counts()
        assert counts[ids["reading"]] == 2

    def test_project_view_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.get_project_view("missing")


class TestWorkspaces:
    def test_add_and_list(self, store):
        ws_id = store.add_workspace("Morning", [_window("https://a.example", "https://b.example")])
        ws = store.get_workspace(ws_id)
        assert ws.tab_count == 2
        assert ws.windows[0].tabs[0].url == "https://a.example"
        assert [w.id for w in store.get_all_workspaces()] == [ws_id]

    def test_update_replaces_windows(self, store):
        ws_id = store.add_workspace("W", [_window("https://a.example")])
        updated = store.update_workspace(ws_id, WorkspacePatch(windows=[_window("https://c.example")]))
        assert [t.url for t in updated.windows[0].tabs] == ["https://c.example"]

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update_workspace("missing", WorkspacePatch(name="x"))

    def test_resave_as_new_copies(self, store):
        ws_id = store.add_workspace("W", [_window("https://a.example")])
        copy_id = store.resave_workspace_as_new(ws_id, "W copy")
        assert copy_id != ws_id
        assert store.get_workspace(copy_id).windows == store.get_workspace(ws_id).windows

    def test_delete(self, store):
        ws_id = store.add_workspace("W", [])
        store.delete_workspace(ws_id)
        store.delete_workspace(ws_id)
        assert store.get_all_workspaces() == []


def test_errors_share_a_base_class():
    assert issubclass(ValidationFailedError, StorageError)
    assert issubclass(NotFoundError, StorageError)


def _fail_on_second_save(monkeypatch):
    """Make items.save_item raise a sqlite error the second time it runs."""
    from workbench.database import items as items_db

    real_save = items_db.save_item
    calls = []

    def flaky_save(conn, item):
        calls.append(item.id)
        if len(calls) == 2:
            raise sqlite3.OperationalError("disk I/O error")
        real_save(conn, item)

    monkeypatch.setattr(items_db, "save_item", flaky_save)
    return calls


class TestAtomicity:
    def test_failed_cascade_leaves_every_item_in_place(self, populated_store, monkeypatch):
        store, ids = populated_store
        before = {i.id: (i.collection_ids, i.updated_at) for i in store.get_all_items()}
        calls = _fail_on_second_save(monkeypatch)

        with pytest.raises(StorageIOError):
            store.delete_collection(ids["reading"])

        assert len(calls) == 2
        assert {i.id: (i.collection_ids, i.updated_at) for i in store.get_all_items()} == before
        assert store.get_collection(ids["reading"]) is not None

    def test_failed_import_writes_nothing(self, populated_store, monkeypatch):
        store, _ = populated_store
        before = [i.to_dict() for i in store.get_all_items()]
        doc = {
            "version": 3,
            "projects": [{"id": "p-new", "name": "New project"}],
            "items": [{"id": f"n{k}", "title": f"New {k}"} for k in range(3)],
        }
        _fail_on_second_save(monkeypatch)

        assert store.import_all(json.dumps(doc), backup_first=False) is False

        assert [i.to_dict() for i in store.get_all_items()] == before
        assert store.get_project("p-new") is None
