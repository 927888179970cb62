"""
The workbench store: versioned CRUD over items, collections, projects and
workspaces, plus export / verify / import.

A ``Store`` is an explicit context object. Create one per database file and
pass it to whatever needs it; ``get_store()`` in this package hands out the
lazily-opened process-wide instance used by the CLI and TUI.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ..config.constants import (
    ALL_PROJECTS_ID,
    ALL_PROJECTS_NAME,
    DEFAULT_COLLECTION_COLOR,
    DEFAULT_COLLECTION_NAME,
    DEFAULT_PROJECT_ID,
    DEFAULT_PROJECT_NAME,
    default_collection_id,
)
from ..exceptions import NotFoundError, StorageIOError, ValidationFailedError
from ..models.types import (
    Collection,
    CollectionPatch,
    Item,
    ItemPatch,
    ItemSource,
    NewItem,
    Project,
    ProjectPatch,
    ProjectView,
    Workspace,
    WorkspacePatch,
    WorkspaceWindow,
)
from ..services.backup_service import BackupService
from ..utils.datetime_utils import bump_timestamp, now_ms
from . import collections as collections_db
from . import items as items_db
from . import portability
from . import projects as projects_db
from . import workspaces as workspaces_db
from .connection import DatabaseConnection
from .portability import DocumentError, VerifyResult

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_name(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailedError(f"{field.capitalize()} must not be empty", field=field)
    return value.strip()


def _clean_tags(tags: object) -> list[str]:
    if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
        raise ValidationFailedError("Tags must be a list of strings", field="tags")
    return [t.strip() for t in tags if t.strip()]


def _clean_url(url: object) -> Optional[str]:
    if url is None:
        return None
    if not isinstance(url, str):
        raise ValidationFailedError("URL must be a string", field="url")
    return url.strip() or None


class Store:
    """Durable, versioned object store backed by one SQLite file."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        backup_dir: Optional[Path] = None,
    ) -> None:
        self.connection = DatabaseConnection(db_path)
        self.backups = BackupService(self.connection.db_path, backup_dir)
        self._opened = False

    @property
    def db_path(self) -> Path:
        return self.connection.db_path

    # ── Lifecycle ─────────────────────────────────────────────────────

    def open(self) -> "Store":
        """Migrate the file and provision defaults. Idempotent.

        Raises:
            SchemaVersionMismatchError: The file is newer than this code.
        """
        if self._opened:
            return self
        self.connection.ensure_schema(before_migrate=self._backup_before_migration)
        with self.connection.transaction() as conn:
            self._ensure_default_project(conn)
        self._opened = True
        return self

    def _backup_before_migration(self, from_version: int, to_version: int) -> None:
        logger.warning(f"Upgrading store from v{from_version} to v{to_version}")
        result = self.backups.create_database_backup(reason=f"pre-migration-v{to_version}")
        if not result.success:
            logger.warning(f"Continuing migration without a backup: {result.message}")

    def _ready(self) -> DatabaseConnection:
        if not self._opened:
            self.open()
        return self.connection

    # ── Default provisioning ──────────────────────────────────────────

    def _ensure_default_collection(self, conn: sqlite3.Connection, project_id: str) -> str:
        cid = default_collection_id(project_id)
        if collections_db.get_collection(conn, cid) is None:
            now = now_ms()
            collections_db.save_collection(
                conn,
                Collection(
                    id=cid,
                    name=DEFAULT_COLLECTION_NAME,
                    primary_project_id=project_id,
                    project_ids=[project_id],
                    is_default=True,
                    color=DEFAULT_COLLECTION_COLOR,
                    created_at=now,
                    updated_at=now,
                ),
            )
        return cid

    def _ensure_default_project(self, conn: sqlite3.Connection) -> str:
        if projects_db.get_project(conn, DEFAULT_PROJECT_ID) is None:
            now = now_ms()
            projects_db.save_project(
                conn,
                Project(
                    id=DEFAULT_PROJECT_ID,
                    name=DEFAULT_PROJECT_NAME,
                    is_default=True,
                    created_at=now,
                    updated_at=now,
                ),
            )
        return self._ensure_default_collection(conn, DEFAULT_PROJECT_ID)

    def _owning_project(self, conn: sqlite3.Connection, collection_ids: list[str]) -> str:
        for cid in collection_ids:
            col = collections_db.get_collection(conn, cid)
            if col is not None:
                return col.primary_project_id
        return DEFAULT_PROJECT_ID

    def _validate_collection_ids(self, conn: sqlite3.Connection, collection_ids: object) -> list[str]:
        if not isinstance(collection_ids, (list, tuple, set)) or not all(
            isinstance(c, str) for c in collection_ids
        ):
            raise ValidationFailedError("Collection ids must be a list of strings", field="collection_ids")
        wanted = list(dict.fromkeys(collection_ids))
        missing = set(wanted) - collections_db.existing_ids(conn, wanted)
        if missing:
            raise ValidationFailedError(
                "Unknown collection", field="collection_ids", missing=sorted(missing)
            )
        return wanted

    # ── Items ─────────────────────────────────────────────────────────

    def add_item(self, fields: NewItem, project_id: Optional[str] = None) -> str:
        """Persist a new item and return its id.

        With no collections chosen the item lands in the "Unsorted" collection
        of ``project_id`` (or of the default project).
        """
        title = fields.title.strip() if isinstance(fields.title, str) else ""
        url = _clean_url(fields.url)
        if not title and not url:
            raise ValidationFailedError("An item needs a title or a URL", field="title")
        tags = _clean_tags(fields.tags)
        source = ItemSource.coerce(fields.source)

        with self._ready().transaction() as conn:
            collection_ids = self._validate_collection_ids(conn, fields.collection_ids)
            if not collection_ids:
                owner = project_id or DEFAULT_PROJECT_ID
                if owner != DEFAULT_PROJECT_ID and projects_db.get_project(conn, owner) is None:
                    raise ValidationFailedError("Unknown project", field="project_id", project_id=owner)
                collection_ids = [self._ensure_default_collection(conn, owner)]

            now = now_ms()
            item = Item(
                id=_new_id(),
                title=title or (url or ""),
                url=url,
                favicon=fields.favicon,
                notes=fields.notes,
                collection_ids=collection_ids,
                tags=tags,
                source=source,
                metadata=dict(fields.metadata or {}),
                created_at=now,
                updated_at=fields.updated_at if fields.updated_at is not None else now,
            )
            items_db.save_item(conn, item)
        logger.debug(f"Added item {item.id}")
        return item.id

    def update_item(self, item_id: str, patch: ItemPatch) -> Item:
        """Apply a patch and bump ``updated_at``.

        Raises:
            NotFoundError: No item has this id.
            ValidationFailedError: The patch would break an item invariant.
        """
        changes = patch.changes()
        with self._ready().transaction() as conn:
            item = items_db.get_item(conn, item_id)
            if item is None:
                raise NotFoundError("Item not found", entity="item", record_id=item_id)

            if "title" in changes:
                title = changes["title"] or ""
                if not isinstance(title, str):
                    raise ValidationFailedError("Title must be a string", field="title")
                changes["title"] = title.strip()
            if "url" in changes:
                changes["url"] = _clean_url(changes["url"])
            if "tags" in changes:
                changes["tags"] = _clean_tags(changes["tags"])
            if "source" in changes:
                changes["source"] = ItemSource.coerce(changes["source"])
            if "metadata" in changes:
                changes["metadata"] = dict(changes["metadata"] or {})
            if "collection_ids" in changes:
                wanted = self._validate_collection_ids(conn, changes["collection_ids"] or [])
                if not wanted:
                    owner = self._owning_project(conn, item.collection_ids)
                    wanted = [self._ensure_default_collection(conn, owner)]
                changes["collection_ids"] = wanted

            updated = replace(item, **changes)
            if not updated.title.strip() and not updated.url:
                raise ValidationFailedError("An item needs a title or a URL", field="title")
            updated.updated_at = bump_timestamp(item.updated_at)
            items_db.save_item(conn, updated)
        return updated

    def set_item_collection(self, item_id: str, collection_id: Optional[str]) -> Item:
        """Single-select move: the item ends up in exactly one collection."""
        return self.update_item(
            item_id, ItemPatch(collection_ids=[collection_id] if collection_id else [])
        )

    def delete_item(self, item_id: str) -> None:
        """Hard delete. Deleting a missing id is a no-op."""
        with self._ready().transaction() as conn:
            if items_db.delete_item(conn, item_id):
                logger.debug(f"Deleted item {item_id}")

    def get_item(self, item_id: str) -> Optional[Item]:
        with self._ready().get_connection() as conn:
            return items_db.get_item(conn, item_id)

    def get_all_items(self) -> list[Item]:
        with self._ready().get_connection() as conn:
            return items_db.list_items(conn)

    def get_items_by_collection(self, collection_id: Optional[str]) -> list[Item]:
        """Items in a collection; ``None`` means the default project's Unsorted."""
        cid = collection_id or default_collection_id(DEFAULT_PROJECT_ID)
        with self._ready().get_connection() as conn:
            return items_db.items_in_collection(conn, cid)

    def search_items(self, query: str, project_id: Optional[str] = None) -> list[Item]:
        """Case-insensitive substring match on title, URL and notes."""
        if project_id and project_id != ALL_PROJECTS_ID:
            pool = self.get_project_view(project_id).items
        else:
            pool = self.get_all_items()
        needle = query.strip().lower()
        if not needle:
            return pool
        return [
            item
            for item in pool
            if needle in " ".join(filter(None, [item.title, item.url, item.notes])).lower()
        ]

    # ── Collections ───────────────────────────────────────────────────

    def add_collection(
        self,
        name: str,
        color: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> str:
        clean = _require_name(name, "name")
        with self._ready().transaction() as conn:
            owner = project_id or DEFAULT_PROJECT_ID
            if owner == ALL_PROJECTS_ID:
                raise ValidationFailedError("Collections cannot belong to All Projects", field="project_id")
            if projects_db.get_project(conn, owner) is None:
                raise ValidationFailedError("Unknown project", field="project_id", project_id=owner)
            now = now_ms()
            collection = Collection(
                id=_new_id(),
                name=clean,
                primary_project_id=owner,
                project_ids=[owner],
                is_default=False,
                color=color or DEFAULT_COLLECTION_COLOR,
                created_at=now,
                updated_at=now,
            )
            collections_db.save_collection(conn, collection)
        return collection.id

    def update_collection(self, collection_id: str, patch: CollectionPatch) -> Collection:
        changes = patch.changes()
        if "name" in changes:
            changes["name"] = _require_name(changes["name"], "name")
        with self._ready().transaction() as conn:
            collection = collections_db.get_collection(conn, collection_id)
            if collection is None:
                raise NotFoundError("Collection not found", entity="collection", record_id=collection_id)
            updated = replace(collection, **changes)
            updated.updated_at = bump_timestamp(collection.updated_at)
            collections_db.save_collection(conn, updated)
        return updated

    def share_collection(self, collection_id: str, project_id: str) -> Collection:
        """Make a collection visible in another project."""
        with self._ready().transaction() as conn:
            collection = collections_db.get_collection(conn, collection_id)
            if collection is None:
                raise NotFoundError("Collection not found", entity="collection", record_id=collection_id)
            if project_id == ALL_PROJECTS_ID or projects_db.get_project(conn, project_id) is None:
                raise ValidationFailedError("Unknown project", field="project_id", project_id=project_id)
            if project_id not in collection.project_ids:
                collection.project_ids.append(project_id)
                collection.updated_at = bump_timestamp(collection.updated_at)
                collections_db.save_collection(conn, collection)
        return collection

    def unshare_collection(self, collection_id: str, project_id: str) -> Collection:
        with self._ready().transaction() as conn:
            collection = collections_db.get_collection(conn, collection_id)
            if collection is None:
                raise NotFoundError("Collection not found", entity="collection", record_id=collection_id)
            if project_id == collection.primary_project_id:
                raise ValidationFailedError(
                    "A collection cannot be removed from its primary project", field="project_id"
                )
            if project_id in collection.project_ids:
                collection.project_ids.remove(project_id)
                collection.updated_at = bump_timestamp(collection.updated_at)
                collections_db.save_collection(conn, collection)
        return collection

    def delete_collection(self, collection_id: str) -> int:
        """Delete a collection, moving its items to the owner's Unsorted.

        Reassignment and deletion commit together. Deleting a missing id is a
        no-op; deleting a project's default collection is rejected.

        Returns:
            Number of items that were reassigned.
        """
        with self._ready().transaction() as conn:
            collection = collections_db.get_collection(conn, collection_id)
            if collection is None:
                return 0
            if collection.is_default:
                raise ValidationFailedError(
                    "The Unsorted collection of a project cannot be deleted",
                    collection_id=collection_id,
                )
            fallback = self._ensure_default_collection(conn, collection.primary_project_id)
            moved = self._reassign_items(conn, collection_id, fallback)
            collections_db.delete_collection(conn, collection_id)
        logger.info(f"Deleted collection {collection_id}; reassigned {moved} item(s) to {fallback}")
        return moved

    def _reassign_items(self, conn: sqlite3.Connection, collection_id: str, fallback: str) -> int:
        affected = items_db.items_in_collection(conn, collection_id)
        for item in affected:
            remaining = [cid for cid in item.collection_ids if cid != collection_id]
            if fallback not in remaining:
                remaining.append(fallback)
            item.collection_ids = remaining
            item.updated_at = bump_timestamp(item.updated_at)
            items_db.save_item(conn, item)
        return len(affected)

    def get_all_collections(self) -> list[Collection]:
        with self._ready().get_connection() as conn:
            return collections_db.list_collections(conn)

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        with self._ready().get_connection() as conn:
            return collections_db.get_collection(conn, collection_id)

    # ── Projects ──────────────────────────────────────────────────────

    def add_project(self, name: str, description: Optional[str] = None) -> str:
        """Create a project together with its Unsorted collection."""
        clean = _require_name(name, "name")
        with self._ready().transaction() as conn:
            now = now_ms()
            project = Project(
                id=_new_id(),
                name=clean,
                description=description,
                is_default=False,
                created_at=now,
                updated_at=now,
            )
            projects_db.save_project(conn, project)
            self._ensure_default_collection(conn, project.id)
        return project.id

    def update_project(self, project_id: str, patch: ProjectPatch) -> Project:
        if project_id == ALL_PROJECTS_ID:
            raise ValidationFailedError("All Projects cannot be edited", field="project_id")
        changes = patch.changes()
        if "name" in changes:
            changes["name"] = _require_name(changes["name"], "name")
        with self._ready().transaction() as conn:
            project = projects_db.get_project(conn, project_id)
            if project is None:
                raise NotFoundError("Project not found", entity="project", record_id=project_id)
            updated = replace(project, **changes)
            updated.updated_at = bump_timestamp(project.updated_at)
            projects_db.save_project(conn, updated)
        return updated

    def delete_project(self, project_id: str) -> bool:
        """Delete a project, handing its collections to the default project.

        Returns:
            False (and changes nothing) for the default project, True otherwise.
        """
        if project_id == ALL_PROJECTS_ID:
            raise ValidationFailedError("All Projects cannot be deleted", field="project_id")
        with self._ready().transaction() as conn:
            project = projects_db.get_project(conn, project_id)
            if project is None:
                return True
            if project.is_default or project_id == DEFAULT_PROJECT_ID:
                return False

            fallback = self._ensure_default_project(conn)
            own_default = default_collection_id(project_id)
            for col in collections_db.list_collections(conn):
                if col.id == own_default:
                    self._reassign_items(conn, col.id, fallback)
                    collections_db.delete_collection(conn, col.id)
                elif col.primary_project_id == project_id:
                    col.primary_project_id = DEFAULT_PROJECT_ID
                    col.project_ids = [p for p in col.project_ids if p != project_id]
                    if DEFAULT_PROJECT_ID not in col.project_ids:
                        col.project_ids.append(DEFAULT_PROJECT_ID)
                    col.updated_at = bump_timestamp(col.updated_at)
                    collections_db.save_collection(conn, col)
                elif project_id in col.project_ids:
                    col.project_ids.remove(project_id)
                    col.updated_at = bump_timestamp(col.updated_at)
                    collections_db.save_collection(conn, col)

            detached = workspaces_db.detach_project(conn, project_id)
            projects_db.delete_project(conn, project_id)
        logger.info(f"Deleted project {project_id}; detached {detached} workspace(s)")
        return True

    def get_all_projects(self) -> list[Project]:
        with self._ready().get_connection() as conn:
            return projects_db.list_projects(conn)

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._ready().get_connection() as conn:
            return projects_db.get_project(conn, project_id)

    def get_project_view(self, project_id: str) -> ProjectView:
        """Collections and items visible in a project, or in All Projects.

        Raises:
            NotFoundError: Unknown project id.
        """
        with self._ready().get_connection() as conn:
            if project_id == ALL_PROJECTS_ID:
                return ProjectView(
                    project=Project(id=ALL_PROJECTS_ID, name=ALL_PROJECTS_NAME, is_default=True),
                    collections=collections_db.list_collections(conn),
                    items=items_db.list_items(conn),
                )
            project = projects_db.get_project(conn, project_id)
            if project is None:
                raise NotFoundError("Project not found", entity="project", record_id=project_id)
            cols = collections_db.collections_for_project(conn, project_id)
            return ProjectView(
                project=project,
                collections=cols,
                items=items_db.items_in_any_collection(conn, [c.id for c in cols]),
            )

    # ── Workspaces ────────────────────────────────────────────────────

    def add_workspace(
        self,
        name: str,
        windows: list[WorkspaceWindow],
        project_id: Optional[str] = None,
    ) -> str:
        clean = _require_name(name, "name")
        with self._ready().transaction() as conn:
            if project_id is not None and projects_db.get_project(conn, project_id) is None:
                raise ValidationFailedError("Unknown project", field="project_id", project_id=project_id)
            now = now_ms()
            workspace = Workspace(
                id=_new_id(),
                name=clean,
                project_id=project_id,
                windows=list(windows),
                created_at=now,
                updated_at=now,
            )
            workspaces_db.save_workspace(conn, workspace)
        return workspace.id

    def update_workspace(self, workspace_id: str, patch: WorkspacePatch) -> Workspace:
        """Rename, relink, or replace the full window list of a snapshot."""
        changes = patch.changes()
        if "name" in changes:
            changes["name"] = _require_name(changes["name"], "name")
        if "windows" in changes:
            changes["windows"] = list(changes["windows"] or [])
        with self._ready().transaction() as conn:
            workspace = workspaces_db.get_workspace(conn, workspace_id)
            if workspace is None:
                raise NotFoundError("Workspace not found", entity="workspace", record_id=workspace_id)
            if changes.get("project_id") is not None and projects_db.get_project(conn, changes["project_id"]) is None:
                raise ValidationFailedError("Unknown project", field="project_id")
            updated = replace(workspace, **changes)
            updated.updated_at = bump_timestamp(workspace.updated_at)
            workspaces_db.save_workspace(conn, updated)
        return updated

    def resave_workspace_as_new(self, workspace_id: str, name: str) -> str:
        """Copy an existing snapshot under a new id and name."""
        source = self.get_workspace(workspace_id)
        if source is None:
            raise NotFoundError("Workspace not found", entity="workspace", record_id=workspace_id)
        return self.add_workspace(name, source.windows, source.project_id)

    def delete_workspace(self, workspace_id: str) -> None:
        with self._ready().transaction() as conn:
            workspaces_db.delete_workspace(conn, workspace_id)

    def get_all_workspaces(self) -> list[Workspace]:
        with self._ready().get_connection() as conn:
            return workspaces_db.list_workspaces(conn)

    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        with self._ready().get_connection() as conn:
            return workspaces_db.get_workspace(conn, workspace_id)

    # ── Export / import ───────────────────────────────────────────────

    def export_all(self) -> str:
        """Serialize every entity into one export document."""
        with self._ready().get_connection() as conn:
            return portability.build_document(
                projects=projects_db.list_projects(conn),
                collections=collections_db.list_collections(conn),
                items=items_db.list_items(conn),
                workspaces=workspaces_db.list_workspaces(conn),
            )

    def verify_backup(self, serialized: str) -> VerifyResult:
        return portability.verify_document(serialized)

    def import_all(self, serialized: str, backup_first: bool = True) -> bool:
        """Merge an export document into the store.

        Records are upserted by id; records absent from the document are left
        alone. Either every record is written or none is.

        Returns:
            False if the document is unusable, the safety export could not be
            written, or any write failed.
        """
        try:
            document = portability.parse_document(serialized)
        except DocumentError as e:
            logger.error(f"Import rejected: {e}")
            return False

        if backup_first:
            try:
                path = self.backups.write_export(self.export_all(), reason="before-import")
            except (OSError, StorageIOError) as e:
                logger.error(f"Import aborted, safety export failed: {e}")
                return False
            logger.info(f"Safety export written to {path}")

        try:
            with self._ready().transaction() as conn:
                for project in document.projects:
                    projects_db.save_project(conn, project)
                for collection in document.collections:
                    collections_db.save_collection(conn, collection)
                for item in document.items:
                    if not item.collection_ids:
                        owner = DEFAULT_PROJECT_ID
                        item.collection_ids = [self._ensure_default_collection(conn, owner)]
                    items_db.save_item(conn, item)
                for workspace in document.workspaces:
                    workspaces_db.save_workspace(conn, workspace)
                self._ensure_default_project(conn)
        except StorageIOError as e:
            logger.error(f"Import failed and was rolled back: {e}")
            return False

        logger.info(
            f"Imported {len(document.projects)} project(s), {len(document.collections)} collection(s), "
            f"{len(document.items)} item(s), {len(document.workspaces)} workspace(s)"
        )
        return True
