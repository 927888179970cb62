"""Entity dataclasses and update patches for the store.

Field names are snake_case in Python; ``to_dict``/``from_dict`` use the keys
of the JSON export document (``collectionIds``, ``isDefault``,
``primaryProjectId`` ...), in camelCase so backups written by the browser
extension stay importable.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional


class ItemSource(str, Enum):
    """How an item entered the store."""

    TAB = "tab"
    BOOKMARK = "bookmark"
    MANUAL = "manual"
    IMPORTED = "imported"

    @classmethod
    def coerce(cls, value: Any) -> "ItemSource":
        """Map arbitrary stored/imported values onto a known source.

        Unknown sources from older exports (e.g. "twitter") become IMPORTED.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.IMPORTED


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _require_mapping(data: Any, what: str) -> None:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be an object, got {type(data).__name__}")


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Item:
    """A saved reference: a bookmarked page, or a note when ``url`` is blank."""

    id: str
    title: str
    url: Optional[str] = None
    favicon: Optional[str] = None
    notes: Optional[str] = None
    collection_ids: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    source: ItemSource = ItemSource.MANUAL
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_note(self) -> bool:
        return not (self.url or "").strip()

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "url": self.url,
                "title": self.title,
                "favicon": self.favicon,
                "notes": self.notes,
                "collectionIds": list(self.collection_ids),
                "tags": list(self.tags),
                "source": self.source.value,
                "metadata": dict(self.metadata) if self.metadata else None,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Item":
        created = int(data.get("created_at") or 0)
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            url=data.get("url") or None,
            favicon=data.get("favicon") or None,
            notes=data.get("notes"),
            collection_ids=_unique(_str_list(data.get("collectionIds"))),
            tags=_str_list(data.get("tags")),
            source=ItemSource.coerce(data.get("source", ItemSource.IMPORTED.value)),
            metadata=dict(data.get("metadata") or {}),
            created_at=created,
            updated_at=int(data.get("updated_at") or created),
        )


@dataclass
class Collection:
    """A named bucket of items, owned by one project and shareable with others."""

    id: str
    name: str
    primary_project_id: str
    project_ids: list[str] = field(default_factory=list)
    is_default: bool = False
    color: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0

    def __post_init__(self) -> None:
        ids = _unique(list(self.project_ids))
        if self.primary_project_id not in ids:
            ids.insert(0, self.primary_project_id)
        self.project_ids = ids

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "name": self.name,
                "color": self.color,
                "isDefault": self.is_default,
                "primaryProjectId": self.primary_project_id,
                "projectIds": list(self.project_ids),
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Collection":
        created = int(data.get("created_at") or 0)
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            primary_project_id=str(data["primaryProjectId"]),
            project_ids=_str_list(data.get("projectIds")),
            is_default=bool(data.get("isDefault", False)),
            color=data.get("color"),
            created_at=created,
            updated_at=int(data.get("updated_at") or created),
        )


@dataclass
class Project:
    """A top-level grouping of collections."""

    id: str
    name: str
    description: Optional[str] = None
    is_default: bool = False
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "name": self.name,
                "description": self.description,
                "isDefault": self.is_default,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        created = int(data.get("created_at") or 0)
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=data.get("description"),
            is_default=bool(data.get("isDefault", False)),
            created_at=created,
            updated_at=int(data.get("updated_at") or created),
        )


@dataclass(frozen=True)
class WorkspaceTab:
    url: str
    title: Optional[str] = None
    fav_icon_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"url": self.url, "title": self.title, "favIconUrl": self.fav_icon_url})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkspaceTab":
        _require_mapping(data, "Workspace tab")
        return cls(
            url=str(data.get("url") or ""),
            title=data.get("title"),
            fav_icon_url=data.get("favIconUrl"),
        )


@dataclass(frozen=True)
class WorkspaceWindow:
    id: str
    name: Optional[str] = None
    tabs: tuple[WorkspaceTab, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"id": self.id, "name": self.name, "tabs": [t.to_dict() for t in self.tabs]}
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkspaceWindow":
        _require_mapping(data, "Workspace window")
        return cls(
            id=str(data["id"]),
            name=data.get("name"),
            tabs=tuple(WorkspaceTab.from_dict(t) for t in data.get("tabs") or []),
        )


@dataclass
class Workspace:
    """A snapshot of browser windows and their tabs, by URL only."""

    id: str
    name: str
    project_id: Optional[str] = None
    windows: list[WorkspaceWindow] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    @property
    def tab_count(self) -> int:
        return sum(len(w.tabs) for w in self.windows)

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "name": self.name,
                "projectId": self.project_id,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
                "windows": [w.to_dict() for w in self.windows],
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Workspace":
        created = int(data.get("created_at") or 0)
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            project_id=data.get("projectId") or None,
            windows=[WorkspaceWindow.from_dict(w) for w in data.get("windows") or []],
            created_at=created,
            updated_at=int(data.get("updated_at") or created),
        )


# ── Creation and update values ────────────────────────────────────────


@dataclass
class NewItem:
    """Fields accepted by ``Store.add_item``; id and timestamps are assigned."""

    title: str
    url: Optional[str] = None
    favicon: Optional[str] = None
    notes: Optional[str] = None
    collection_ids: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    source: ItemSource = ItemSource.MANUAL
    metadata: dict[str, Any] = field(default_factory=dict)
    updated_at: Optional[int] = None


class _Unset:
    """Marker for patch fields that should be left alone."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class _Patch:
    """Shared behaviour of the per-entity patch dataclasses."""

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were explicitly set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(frozen=True)
class ItemPatch(_Patch):
    title: Any = UNSET
    url: Any = UNSET
    favicon: Any = UNSET
    notes: Any = UNSET
    collection_ids: Any = UNSET
    tags: Any = UNSET
    source: Any = UNSET
    metadata: Any = UNSET


@dataclass(frozen=True)
class CollectionPatch(_Patch):
    name: Any = UNSET
    color: Any = UNSET


@dataclass(frozen=True)
class ProjectPatch(_Patch):
    name: Any = UNSET
    description: Any = UNSET


@dataclass(frozen=True)
class WorkspacePatch(_Patch):
    name: Any = UNSET
    windows: Any = UNSET
    project_id: Any = UNSET


@dataclass
class ProjectView:
    """Read-path aggregate of one project (or of All Projects)."""

    project: Project
    collections: list[Collection]
    items: list[Item]

    def item_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.items:
            for cid in item.collection_ids:
                counts[cid] = counts.get(cid, 0) + 1
        return counts
