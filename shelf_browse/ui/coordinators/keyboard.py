"""Keyboard navigation for the shelf display.

Key presses map through a fixed table to :class:`NavigationAction` values;
dispatch then calls into the focus coordinator or the paging engine.  The
only state consulted is the feature status guard: while the widget is
inactive, loading, resizing or covered by an overlay, keys are left
unhandled (they are never queued).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import NavigationAction

logger = logging.getLogger(__name__)

__all__ = ["KEY_TABLE", "KeyboardNavigator", "key_from_event", "normalize_key_name", "resolve_action"]

# Tk keysyms and DOM key names for the same physical keys.
_KEY_ALIASES = {
    "Prior": "PageUp",
    "Next": "PageDown",
    "Left": "ArrowLeft",
    "Right": "ArrowRight",
    "Up": "ArrowUp",
    "Down": "ArrowDown",
    "KP_Prior": "PageUp",
    "KP_Next": "PageDown",
    "KP_Home": "Home",
    "KP_End": "End",
    "KP_Left": "ArrowLeft",
    "KP_Right": "ArrowRight",
}

# (key, shifted) -> (action, count)
KEY_TABLE: Dict[Tuple[str, bool], Tuple[NavigationAction, int]] = {
    ("PageUp", False): (NavigationAction.PAGE_FORWARD, 1),
    ("PageUp", True): (NavigationAction.PAGE_FORWARD, 10),
    ("PageDown", False): (NavigationAction.PAGE_REVERSE, 1),
    ("PageDown", True): (NavigationAction.PAGE_REVERSE, 10),
    ("End", False): (NavigationAction.FOCUS_LAST, 1),
    ("End", True): (NavigationAction.FOCUS_LAST, 1),
    ("Home", False): (NavigationAction.FOCUS_FIRST, 1),
    ("Home", True): (NavigationAction.PAGE_HOME, 1),
    ("ArrowLeft", False): (NavigationAction.FOCUS_REV, 1),
    ("ArrowLeft", True): (NavigationAction.PAGE_REVERSE, 1),
    ("ArrowRight", False): (NavigationAction.FOCUS_FWD, 1),
    ("ArrowRight", True): (NavigationAction.PAGE_FORWARD, 1),
}

# Tk event.state bit for Shift.
_TK_SHIFT_MASK = 0x0001


def normalize_key_name(key: Optional[str]) -> str:
    if not key:
        return ""
    return _KEY_ALIASES.get(key, key)


def resolve_action(key: Optional[str], shift: bool = False) -> Tuple[NavigationAction, int]:
    return KEY_TABLE.get((normalize_key_name(key), bool(shift)), (NavigationAction.IGNORED, 1))


def key_from_event(event: Any) -> Tuple[str, bool]:
    """Extract (key name, shift) from a Tk event or a :class:`ViewEvent`."""
    key = getattr(event, "keysym", None) or getattr(event, "key", None) or ""
    if hasattr(event, "shift"):
        shift = bool(event.shift)
    else:
        state = getattr(event, "state", 0)
        shift = bool(isinstance(state, int) and state & _TK_SHIFT_MASK)
    return str(key), shift


class KeyboardNavigator:
    """Translate key presses into focus moves and page changes.

    Parameters
    ----------
    session : ShelfBrowseSession
    focus : FocusCoordinator
    paging : PagingEngine
    origin_getter : Callable[[], Optional[ElementHandle]]
        Returns the ``.origin`` control used for PAGE_HOME.
    """

    def __init__(self, *, session: ShelfBrowseSession, focus: Any, paging: Any, origin_getter: Any) -> None:
        self._session = session
        self._focus = focus
        self._paging = paging
        self._origin_getter = origin_getter

    def handle(self, event: Any) -> bool:
        """Handle a key event; return True when it was consumed."""
        status = self._session.status
        if status.input_blocked:
            logger.debug("ignoring key event: active=%s loading=%s resizing=%s overlays=%s",
                         status.active, status.loading, status.browser_resizing, status.open_overlays)
            return False
        key, shift = key_from_event(event)
        action, count = resolve_action(key, shift)
        if action is NavigationAction.IGNORED:
            return False
        logger.debug("key %s%s -> %s x%d", "shift+" if shift else "", key, action.name, count)
        for name in ("prevent_default", "stop_propagation"):
            method = getattr(event, name, None)
            if callable(method):
                method()
        self.dispatch(action, count)
        return True

    def dispatch(self, action: NavigationAction, count: int = 1) -> None:
        if action is NavigationAction.FOCUS_FIRST:
            self._focus.focus_edge("first")
        elif action is NavigationAction.FOCUS_LAST:
            self._focus.focus_edge("last")
        elif action is NavigationAction.FOCUS_FWD:
            self._focus.step_focus("forward", count)
        elif action is NavigationAction.FOCUS_REV:
            self._focus.step_focus("reverse", count)
        elif action is NavigationAction.PAGE_HOME:
            self._paging.goto_target_page(self._origin_getter())
        elif action is NavigationAction.PAGE_FORWARD:
            self._paging.page("forward", count)
        elif action is NavigationAction.PAGE_REVERSE:
            self._paging.page("reverse", count)
