"""UI layer: view handles, host adapter, coordinators and controllers."""

from .controllers import ModalHostAdapter, ShelfBrowseController  # noqa: F401
from .host import HostWindow, TkHost  # noqa: F401
from .view import ElementHandle, ViewDocument  # noqa: F401

__all__ = [
    "ElementHandle",
    "HostWindow",
    "ModalHostAdapter",
    "ShelfBrowseController",
    "TkHost",
    "ViewDocument",
]
