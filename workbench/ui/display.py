"""Resolve what a tab shows from fresh store snapshots."""

from dataclasses import dataclass
from typing import Iterable

from ..models.types import Collection, Item
from ..placement.tabs import Tab, TabKind
from ..utils.datetime_utils import format_ts


@dataclass(frozen=True)
class TabDisplay:
    title: str
    body: str
    missing: bool = False


def _item_body(item: Item, collections: dict[str, Collection]) -> str:
    lines = []
    if item.url:
        lines.append(item.url)
    names = [collections[c].name for c in item.collection_ids if c in collections]
    if names:
        lines.append("Collections: " + ", ".join(names))
    if item.tags:
        lines.append("Tags: " + ", ".join(item.tags))
    lines.append(f"Updated: {format_ts(item.updated_at)}")
    if item.notes:
        lines.extend(["", item.notes])
    return "\n".join(lines)


def resolve_tab_display(
    tab: Tab,
    items: Iterable[Item],
    collections: Iterable[Collection],
) -> TabDisplay:
    """Title and body for ``tab``.

    A tab whose record was deleted keeps its last title and is marked missing.
    """
    items = list(items)
    by_collection = {c.id: c for c in collections}

    if tab.kind is TabKind.ITEM:
        item = next((i for i in items if i.id == tab.item_id), None)
        if item is None:
            return TabDisplay(title=tab.title or "(deleted)", body="This item no longer exists.", missing=True)
        return TabDisplay(title=item.title or item.url or "(untitled)", body=_item_body(item, by_collection))

    if tab.kind is TabKind.COLLECTION:
        collection = by_collection.get(tab.collection_id or "")
        if collection is None:
            return TabDisplay(title=tab.title or "(deleted)", body="This collection no longer exists.", missing=True)
        members = [i for i in items if collection.id in i.collection_ids]
        body = "\n".join(f"- {i.title or i.url}" for i in members) or "No items yet."
        return TabDisplay(title=f"{collection.name} ({len(members)})", body=body)

    return TabDisplay(title=tab.title, body="")
