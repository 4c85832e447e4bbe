"""Lifecycle controllers of the shelf browse widget."""

from .modal_host_adapter import ModalCallbacks, ModalHostAdapter, ModalWindow  # noqa: F401
from .shelf_browse_controller import ShelfBrowseController  # noqa: F401

__all__ = [
    "ModalCallbacks",
    "ModalHostAdapter",
    "ModalWindow",
    "ShelfBrowseController",
]
