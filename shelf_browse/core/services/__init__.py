"""Transport and persistence services used by the shelf browse coordinators."""

from .fetch_service import FetchHandle, FetchService  # noqa: F401
from .tree_state_store import TreeState, TreeStateStore  # noqa: F401

__all__ = [
    "FetchHandle",
    "FetchService",
    "TreeState",
    "TreeStateStore",
]
