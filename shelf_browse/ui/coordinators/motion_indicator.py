from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import Motion
from shelf_browse.ui.coordinators.base import find_display
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["MotionIndicator"]


class MotionIndicator:
    """Transient feedback shown while the shelf content is being replaced.

    Two independent cues, both gated by ``show_motion``: a progress bar that
    temporarily replaces the current-range caption, and a scroll animation
    class on the tile container.  The replaced state is remembered so a failed
    load can put the display back the way it was.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
    """

    def __init__(self, *, session: ShelfBrowseSession, view: ViewDocument) -> None:
        self._session = session
        self._view = view
        self._saved_area: Optional[ElementHandle] = None
        self._saved_text: Optional[str] = None
        self._saved_children: List[Tuple[ElementHandle, Optional[str]]] = []
        self._scrolled: Optional[ElementHandle] = None
        self._scroll_class: Optional[str] = None

    # -------------------------------------------------------------- Public API
    def show(self, motion: Optional[Motion] = None, text: Optional[str] = None) -> None:
        config = self._session.config
        if not config.show_motion:
            logger.debug("show_motion disabled")
            return
        if config.show_progress_bar:
            self.show_progress_bar(motion, text)
        if config.show_tile_scroller:
            self.show_tile_scroller(motion)

    def show_progress_bar(self, motion: Optional[Motion] = None, text: Optional[str] = None) -> None:
        display = find_display(self._view, "show_progress_bar")
        if display is None:
            return
        target = display.find("current-range-area")
        if target is None:
            logger.error("show_progress_bar: missing .current-range-area")
            return

        behind, direction = self._direction(display, motion)
        if text:
            content = text
        elif self._session.config.show_progress_bar_text:
            arrow = "<" * 10 if behind else ">" * 10
            content = f"{arrow} retrieving items {arrow}"
        else:
            content = " "

        self._save_area(target)
        bar = display.create("div", f"progress-bar {direction}", content, role="progressbar")
        overlay = display.create("div", "progress-overlay")
        overlay.append(bar)
        target.append(overlay)

    def show_tile_scroller(self, motion: Optional[Motion] = None) -> None:
        display = find_display(self._view, "show_tile_scroller")
        if display is None:
            return
        target = display.find("tile-container")
        if target is None:
            logger.error("show_tile_scroller: missing .tile-container")
            return
        _, direction = self._direction(display, motion)
        # Moving right (higher call numbers) scrolls the tiles left.
        opposite = "left" if direction == "right" else "right"
        self._scrolled = target
        self._scroll_class = f"scroll-{opposite}"
        target.add_class(self._scroll_class)

    def revert(self) -> None:
        """Undo the last indicator, restoring the caption and tile classes."""
        area = self._saved_area
        if area is not None:
            area.empty()
            area.element.text = self._saved_text
            for child, tail in self._saved_children:
                area.append(child).element.tail = tail
        if self._scrolled is not None and self._scroll_class:
            self._scrolled.remove_class(self._scroll_class)
        self.discard()

    def discard(self) -> None:
        """Forget the saved state (the content it belonged to was replaced)."""
        self._saved_area = None
        self._saved_text = None
        self._saved_children = []
        self._scrolled = None
        self._scroll_class = None

    @property
    def active(self) -> bool:
        return self._saved_area is not None or self._scrolled is not None

    # ------------------------------------------------------------- Internals
    def _save_area(self, area: ElementHandle) -> None:
        if self._saved_area is None or self._saved_area != area:
            self._saved_area = area
            self._saved_text = area.element.text
            self._saved_children = [(child, child.element.tail) for child in area.children()]
            for child, _ in self._saved_children:
                child.detach()
        else:
            # A second indicator on the same caption: drop the previous bar only.
            for child in area.children():
                child.remove()
        area.element.text = None

    @staticmethod
    def _direction(display: ElementHandle, motion: Optional[Motion]):
        if motion:
            return motion == "left", motion
        behind = display.find("page-display behind") is not None
        return behind, ("right" if behind else "left")
