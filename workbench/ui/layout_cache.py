"""
Per-view layout cache.

Stores pane widths, split ratios and the split/visibility booleans in
``~/.config/workbench/layouts/<view>.yaml``. Tab placement itself is never
persisted. A missing or unreadable file yields the defaults.
"""

import logging
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..config.constants import (
    DEFAULT_LIST_WIDTH,
    DEFAULT_RIGHT_PANE_WIDTH,
    DEFAULT_SPLIT_RATIO,
    MAX_SPLIT_RATIO,
    MIN_SPLIT_RATIO,
)
from ..config.settings import get_layout_dir

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass
class LayoutState:
    list_width: int = DEFAULT_LIST_WIDTH
    right_pane_width: int = DEFAULT_RIGHT_PANE_WIDTH
    main_split_ratio: int = DEFAULT_SPLIT_RATIO
    right_split_ratio: int = DEFAULT_SPLIT_RATIO
    right_pane_visible: bool = False
    main_split: bool = False
    right_split: bool = False

    def clamped(self) -> "LayoutState":
        return LayoutState(
            list_width=max(10, self.list_width),
            right_pane_width=max(10, self.right_pane_width),
            main_split_ratio=min(MAX_SPLIT_RATIO, max(MIN_SPLIT_RATIO, self.main_split_ratio)),
            right_split_ratio=min(MAX_SPLIT_RATIO, max(MIN_SPLIT_RATIO, self.right_split_ratio)),
            right_pane_visible=self.right_pane_visible,
            main_split=self.main_split,
            right_split=self.right_split,
        )


def _from_mapping(data: Dict[str, Any]) -> LayoutState:
    """Take only well-typed known keys; anything else keeps its default."""
    state = LayoutState()
    for f in fields(LayoutState):
        value = data.get(f.name)
        if f.type in (bool, "bool"):
            if isinstance(value, bool):
                setattr(state, f.name, value)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            setattr(state, f.name, int(value))
    return state.clamped()


class LayoutCache:
    """Load and save the layout of one view (e.g. one project dashboard)."""

    def __init__(self, view_key: str, layout_dir: Optional[Path] = None):
        self.view_key = view_key
        self.layout_dir = layout_dir or get_layout_dir()

    @property
    def path(self) -> Path:
        name = _UNSAFE_CHARS.sub("_", self.view_key) or "default"
        return self.layout_dir / f"{name}.yaml"

    def load(self) -> LayoutState:
        if not self.path.exists():
            return LayoutState()
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable layout {self.path}: {e}")
            return LayoutState()
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed layout {self.path}")
            return LayoutState()
        return _from_mapping(data)

    def save(self, state: LayoutState) -> bool:
        try:
            self.layout_dir.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                yaml.safe_dump(asdict(state.clamped()), f, default_flow_style=False, sort_keys=False)
            return True
        except OSError as e:
            logger.error(f"Failed to save layout {self.path}: {e}")
            return False
