"""Export document format, structural verification and legacy upgrades.

An export document is a JSON object::

    {"version": 3, "items": [...], "collections": [...],
     "projects": [...], "workspaces": [...]}

Any entity list may be missing (treated as empty). Documents written before
the format carried a version are treated as version 1. Older documents are
upgraded step by step in memory before they are imported; documents newer
than SCHEMA_VERSION are rejected.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..config.constants import DEFAULT_PROJECT_ID, SCHEMA_VERSION
from ..models.types import Collection, Item, Project, Workspace

logger = logging.getLogger(__name__)

ENTITY_KEYS = ("projects", "collections", "items", "workspaces")
# Older browser exports kept notes in their own list; they become url-less items
LEGACY_KEYS = ("notes",)
LEGACY_VERSION = 1


class DocumentError(ValueError):
    """An export document cannot be used."""


@dataclass
class VerifyResult:
    """Outcome of ``verify_backup``."""

    valid: bool
    error: Optional[str] = None
    version: Optional[int] = None
    stats: dict[str, int] = field(default_factory=dict)


@dataclass
class ExportDocument:
    """Parsed, upgraded export payload ready to upsert."""

    version: int
    projects: list[Project]
    collections: list[Collection]
    items: list[Item]
    workspaces: list[Workspace]


def build_document(
    projects: list[Project],
    collections: list[Collection],
    items: list[Item],
    workspaces: list[Workspace],
) -> str:
    """Serialize entity snapshots into an export document string."""
    payload = {
        "version": SCHEMA_VERSION,
        "projects": [p.to_dict() for p in projects],
        "collections": [c.to_dict() for c in collections],
        "items": [i.to_dict() for i in items],
        "workspaces": [w.to_dict() for w in workspaces],
    }
    return json.dumps(payload, indent=2)


def _document_version(data: dict[str, Any]) -> int:
    version = data.get("version", LEGACY_VERSION)
    # bool is an int subclass; reject it explicitly
    if isinstance(version, bool) or not isinstance(version, int):
        raise DocumentError(f"Unsupported version tag: {version!r}")
    if version < LEGACY_VERSION:
        raise DocumentError(f"Unsupported version tag: {version!r}")
    if version > SCHEMA_VERSION:
        raise DocumentError(
            f"Backup version {version} is newer than supported version {SCHEMA_VERSION}"
        )
    return version


def verify_document(text: str) -> VerifyResult:
    """Structural check of an export document. Never touches the store."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        return VerifyResult(valid=False, error=f"JSON parse error: {e}")

    if not isinstance(data, dict):
        return VerifyResult(valid=False, error="Invalid JSON format: expected an object")

    try:
        version = _document_version(data)
    except DocumentError as e:
        return VerifyResult(valid=False, error=str(e))

    stats: dict[str, int] = {}
    for key in ENTITY_KEYS + LEGACY_KEYS:
        value = data.get(key)
        if value is None:
            stats[key] = 0
            continue
        if not isinstance(value, list):
            return VerifyResult(valid=False, error=f"'{key}' must be a list", version=version)
        if not all(isinstance(entry, dict) for entry in value):
            return VerifyResult(valid=False, error=f"'{key}' must contain objects", version=version)
        if not all("id" in entry for entry in value):
            return VerifyResult(valid=False, error=f"Every entry in '{key}' needs an id", version=version)
        stats[key] = len(value)

    if not any(stats.values()):
        return VerifyResult(valid=False, error="Backup appears to be empty", version=version, stats=stats)

    return VerifyResult(valid=True, version=version, stats=stats)


# ── Legacy upgrades ───────────────────────────────────────────────────


def _note_to_item(note: dict[str, Any]) -> dict[str, Any]:
    """A stand-alone note record becomes an item without a URL."""
    collection = note.get("collectionId")
    metadata = {key: note[key] for key in ("linkedItemIds", "pageContext", "externalIds") if note.get(key)}
    return {
        "id": note["id"],
        "title": note.get("title") or "",
        "notes": note.get("content") or "",
        "collectionIds": [collection] if isinstance(collection, str) else [],
        "source": "manual",
        "metadata": metadata,
        "created_at": note.get("created_at") or 0,
        "updated_at": note.get("updated_at") or note.get("created_at") or 0,
    }


def _upgrade_1_to_2(data: dict[str, Any]) -> dict[str, Any]:
    """Notes fold into items; a single ``collectionId`` becomes ``collectionIds``."""
    items = data.get("items") or []
    known = {item.get("id") for item in items}
    for note in data.pop("notes", None) or []:
        if note.get("id") in known:
            logger.warning(f"Skipping legacy note {note.get('id')}: an item has the same id")
            continue
        items.append(_note_to_item(note))
        known.add(note.get("id"))
    data["items"] = items

    for item in data.get("items") or []:
        if not isinstance(item.get("collectionIds"), list):
            old = item.get("collectionId")
            item["collectionIds"] = [old] if isinstance(old, str) else []
        item.pop("collectionId", None)
    return data


def _upgrade_2_to_3(data: dict[str, Any]) -> dict[str, Any]:
    """Collections gain project ownership; workspaces gain an optional project link."""
    for col in data.get("collections") or []:
        primary = col.get("primaryProjectId")
        if not isinstance(primary, str):
            primary = DEFAULT_PROJECT_ID
            col["primaryProjectId"] = primary
        if not isinstance(col.get("projectIds"), list):
            col["projectIds"] = [primary]
        col.setdefault("isDefault", False)
    for ws in data.get("workspaces") or []:
        ws.setdefault("projectId", None)
    return data


DOCUMENT_UPGRADES: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _upgrade_1_to_2,
    2: _upgrade_2_to_3,
}


def upgrade_document(data: dict[str, Any], version: int) -> dict[str, Any]:
    while version < SCHEMA_VERSION:
        logger.info(f"Upgrading export document from v{version} to v{version + 1}")
        data = DOCUMENT_UPGRADES[version](data)
        version += 1
    data["version"] = version
    return data


def parse_document(text: str) -> ExportDocument:
    """Parse, verify and upgrade an export document.

    Raises:
        DocumentError: The document fails verification or a record is malformed.
    """
    result = verify_document(text)
    if not result.valid:
        raise DocumentError(result.error or "Invalid backup")

    data = upgrade_document(json.loads(text), result.version or LEGACY_VERSION)
    # Normalisation also applies to current-version documents written by hand
    data = _upgrade_2_to_3(_upgrade_1_to_2(data))

    try:
        return ExportDocument(
            version=data["version"],
            projects=[Project.from_dict(p) for p in data.get("projects") or []],
            collections=[Collection.from_dict(c) for c in data.get("collections") or []],
            items=[Item.from_dict(i) for i in data.get("items") or []],
            workspaces=[Workspace.from_dict(w) for w in data.get("workspaces") or []],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DocumentError(f"Malformed record: {e}") from e
