"""Persisted UI state of the classification tree.

Three values survive between activations: the nodes whose branches were
loaded, the nodes left open and the selected node.  They are kept in a small
JSON file keyed by a cookie-style path (``/`` by default) and only restore
the tree's appearance; they never stand in for fetching the tree data.

Public API:
- TreeStateStore.load() -> TreeState
- TreeStateStore.save(state) -> None
- TreeStateStore.clear() -> None
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

__all__ = ["TreeState", "TreeStateStore"]


@dataclass
class TreeState:
    loaded: List[str] = field(default_factory=list)
    opened: List[str] = field(default_factory=list)
    selected: Optional[str] = None


class TreeStateStore:
    """JSON-file storage for :class:`TreeState`.

    Parameters
    ----------
    file_path : Path
        Location of the state file (created on first save).
    path : str
        Scope under which the values are stored.
    loaded_key, opened_key, selected_key : str
        Names of the stored values.
    """

    def __init__(
        self,
        file_path: Path,
        *,
        path: str = "/",
        loaded_key: str = "shelf_browse_loaded",
        opened_key: str = "shelf_browse_opened",
        selected_key: str = "shelf_browse_selected",
    ) -> None:
        self._file = Path(file_path)
        self.path = path
        self.loaded_key = loaded_key
        self.opened_key = opened_key
        self.selected_key = selected_key

    @classmethod
    def from_config(cls, file_path: Path, settings: Optional[Mapping[str, Any]] = None) -> "TreeStateStore":
        settings = settings or {}
        kwargs = {k: settings[k] for k in ("path", "loaded_key", "opened_key", "selected_key") if settings.get(k)}
        return cls(file_path, **kwargs)

    @property
    def file_path(self) -> Path:
        return self._file

    def _read_all(self) -> Dict[str, Dict[str, Any]]:
        if not self._file.exists():
            return {}
        try:
            data = json.loads(self._file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read tree state %s: %s", self._file, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> TreeState:
        scoped = self._read_all().get(self.path) or {}
        selected = scoped.get(self.selected_key)
        return TreeState(
            loaded=list(scoped.get(self.loaded_key) or []),
            opened=list(scoped.get(self.opened_key) or []),
            selected=str(selected) if selected else None,
        )

    def save(self, state: TreeState) -> None:
        data = self._read_all()
        data[self.path] = {
            self.loaded_key: list(state.loaded),
            self.opened_key: list(state.opened),
            self.selected_key: state.selected,
        }
        try:
            self._file.parent.mkdir(parents=True, exist_ok=True)
            self._file.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save tree state %s: %s", self._file, exc)

    def clear(self) -> None:
        data = self._read_all()
        if data.pop(self.path, None) is None:
            return
        try:
            self._file.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not clear tree state %s: %s", self._file, exc)
