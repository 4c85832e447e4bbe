"""Session-scoped cache for the classification tree payload.

The LCC hierarchy is large and slow to produce, so it is fetched at most once
per hosting session and reused by every widget activation that follows.

Public API:
- get_classification_tree_cache() -> cache object for the process
- ClassificationTreeCache.get() -> payload or None
- ClassificationTreeCache.set_if_absent(data) -> payload actually stored
- ClassificationTreeCache.add_waiter(callback) / deliver() -> callers waiting
  on the single in-flight fetch, whichever widget started it
- tree_id_to_range(tree_id, root_id) -> call number range code
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

__all__ = ["ClassificationTreeCache", "get_classification_tree_cache", "tree_id_to_range"]

_ID_PREFIX = re.compile(r"^[^_]*_")


class ClassificationTreeCache:
    """Single-slot holder for the tree payload plus an in-flight guard.

    The slot is never invalidated once set; the first writer wins.
    """

    def __init__(self) -> None:
        self._data: Optional[Any] = None
        self._waiters: List[Callable[[Any], None]] = []
        self.downloading: bool = False

    @property
    def has_data(self) -> bool:
        return self._data is not None

    def get(self) -> Optional[Any]:
        return self._data

    def set_if_absent(self, data: Any) -> Any:
        """Store *data* unless a payload is already cached; return the cached payload."""
        if self._data is None and data is not None:
            self._data = data
            logger.debug("Classification tree cached")
        return self._data

    def add_waiter(self, callback: Callable[[Any], None]) -> None:
        """Queue *callback* for the payload of the fetch in flight."""
        self._waiters.append(callback)

    def deliver(self) -> None:
        """Hand the cached payload to every queued waiter."""
        waiters, self._waiters = self._waiters, []
        for callback in waiters:
            callback(self._data)

    def drop_waiters(self) -> int:
        dropped = len(self._waiters)
        self._waiters = []
        return dropped


_CACHE: Optional[ClassificationTreeCache] = None


def get_classification_tree_cache() -> ClassificationTreeCache:
    global _CACHE
    if _CACHE is None:
        _CACHE = ClassificationTreeCache()
    return _CACHE


def tree_id_to_range(tree_id: str, root_id: str = "ROOT") -> str:
    """Get the call number range from a tree node identifier.

    Classes have ids like ``CLASS_X`` and subclasses ``SUBCLASS_XX``; any other
    node id is already the range.  The root node maps to no range filter.
    """
    node_id = str(tree_id).upper()
    if node_id == str(root_id).upper():
        return ""
    return _ID_PREFIX.sub("", node_id, count=1)
