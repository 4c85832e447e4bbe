"""Virtual shelf browse controller for library catalog pages.

This package holds the GUI-agnostic implementation: runtime state, paging,
focus, keyboard and overlay handling over an ``lxml.html`` view.  Front-ends
should depend on the names exported here rather than internal modules.
"""

from .app import create_controller  # noqa: F401
from .core.models import Configuration  # re-export for convenience

__all__: list[str] = [
    "Configuration",
    "create_controller",
]
