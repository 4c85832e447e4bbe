"""Coordinators owning one concern each of the shelf browse display."""

from .decorations import PageDecorations  # noqa: F401
from .focus_coordinator import FocusCoordinator  # noqa: F401
from .help_overlay import HelpOverlay  # noqa: F401
from .keyboard import KeyboardNavigator  # noqa: F401
from .lcc_tree_coordinator import LccTreeCoordinator  # noqa: F401
from .motion_indicator import MotionIndicator  # noqa: F401
from .overlay_coordinator import OverlayManager  # noqa: F401
from .paging_coordinator import PagingEngine  # noqa: F401
from .panel_coordinator import PanelCoordinator  # noqa: F401
from .request_dialog import RequestDialog  # noqa: F401

__all__ = [
    "FocusCoordinator",
    "HelpOverlay",
    "KeyboardNavigator",
    "LccTreeCoordinator",
    "MotionIndicator",
    "OverlayManager",
    "PageDecorations",
    "PagingEngine",
    "PanelCoordinator",
    "RequestDialog",
]
