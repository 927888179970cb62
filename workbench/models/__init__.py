"""Entity models for workbench."""

from .types import (
    UNSET,
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
    WorkspaceTab,
    WorkspaceWindow,
)

__all__ = [
    "UNSET",
    "Collection",
    "CollectionPatch",
    "Item",
    "ItemPatch",
    "ItemSource",
    "NewItem",
    "Project",
    "ProjectPatch",
    "ProjectView",
    "Workspace",
    "WorkspacePatch",
    "WorkspaceTab",
    "WorkspaceWindow",
]
