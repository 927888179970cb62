"""Shared pytest fixtures for workbench tests."""

import logging

import pytest

from workbench.database import Store, reset_store
from workbench.models.types import NewItem


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point every path workbench uses at the test's temp directory."""
    monkeypatch.setenv("WORKBENCH_DB", str(tmp_path / "workbench.db"))
    monkeypatch.setenv("WORKBENCH_BACKUP_DIR", str(tmp_path / "backups"))
    monkeypatch.setenv("WORKBENCH_BACKUP_COMPRESS", "false")
    monkeypatch.setattr("workbench.config.settings.WORKBENCH_LAYOUT_DIR", tmp_path / "layouts")
    reset_store()
    yield
    reset_store()
    # CLI callbacks configure the package logger; undo that so caplog keeps working
    package_logger = logging.getLogger("workbench")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True


@pytest.fixture
def store(tmp_path):
    """A freshly migrated store in a temp file."""
    return Store(tmp_path / "store.db", backup_dir=tmp_path / "store-backups").open()


@pytest.fixture
def populated_store(store):
    """Store with one extra project, two collections and three items."""
    project_id = store.add_project("Research", description="papers")
    reading = store.add_collection("Reading")
    papers = store.add_collection("Papers", project_id=project_id)
    ids = {
        "project": project_id,
        "reading": reading,
        "papers": papers,
        "x": store.add_item(NewItem(title="X", url="https://x.example", collection_ids=[reading])),
        "y": store.add_item(NewItem(title="Y", url="https://y.example", collection_ids=[reading])),
        "z": store.add_item(NewItem(title="Z", url="https://z.example", collection_ids=[papers])),
    }
    return store, ids
