"""Tab values shown inside panes.

A tab is a projection of something in the store (an item, a collection view)
or a system panel. It is never persisted; closing one leaves the underlying
record untouched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TabKind(str, Enum):
    ITEM = "item"
    COLLECTION = "collection"
    SYSTEM = "system"


@dataclass(frozen=True)
class Tab:
    """An open view. ``id`` is stable per subject, so reopening finds it."""

    id: str
    title: str
    kind: TabKind = TabKind.ITEM
    item_id: Optional[str] = None
    collection_id: Optional[str] = None


def item_tab(item_id: str, title: str = "") -> Tab:
    return Tab(id=f"item:{item_id}", title=title, kind=TabKind.ITEM, item_id=item_id)


def collection_tab(collection_id: str, title: str = "") -> Tab:
    return Tab(
        id=f"collection:{collection_id}",
        title=title,
        kind=TabKind.COLLECTION,
        collection_id=collection_id,
    )


def system_tab(name: str, title: Optional[str] = None) -> Tab:
    """System panels (settings, workspaces, backups) keyed by name."""
    return Tab(id=f"system:{name}", title=title or name.capitalize(), kind=TabKind.SYSTEM)
