from __future__ import annotations

import logging
from typing import Optional

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import OverlayKind
from shelf_browse.ui.coordinators.overlay_coordinator import OverlayManager
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["HelpOverlay"]

LCC_TOPIC_PREFIX = "help_lcc_"
MORE_SCROLL = "more-scroll"


class HelpOverlay:
    """Help panel: open/close through the overlay manager plus topic switching."""

    scroll_direction = "right"

    def __init__(self, *, session: ShelfBrowseSession, view: ViewDocument, overlays: OverlayManager) -> None:
        self._session = session
        self._view = view
        self._overlays = overlays

    def container(self) -> Optional[ElementHandle]:
        display = self._view.find("shelf-browse display")
        return display.find("help-container") if display is not None else None

    # -------------------------------------------------------------- Public API
    def show(self, control: Optional[ElementHandle], container: Optional[ElementHandle] = None) -> None:
        container = container or self.container()
        if container is None:
            logger.error("show_help: missing .help-container")
            return
        self._overlays.open(OverlayKind.HELP, control, container, self.hide)
        self.scroll_help(container)

    def hide(self, control: Optional[ElementHandle], container: Optional[ElementHandle] = None) -> None:
        self._overlays.close(OverlayKind.HELP, control, container or self.container())

    def toggle(self, control: Optional[ElementHandle]) -> None:
        if self._overlays.is_close_affordance(control) or (
                control is None and self._overlays.is_open(OverlayKind.HELP)):
            self.hide(control)
        else:
            self.show(control)

    def scroll_help(self, container: ElementHandle, position: float = 0) -> None:
        container.scroll_top = position
        container.set("data-scroll-left", f"{max(0.0, float(position)):g}")
        if self._session.config.show_more_scroll:
            self.update_more_scroll(container, self.scroll_direction)

    def update_more_scroll(self, container: Optional[ElementHandle], direction: str = "down") -> None:
        """Show the "More" marker only while the panel is scrollable and unscrolled."""
        if container is None:
            return
        horizontal = direction == "right"
        if horizontal:
            has_scroll_bar = (_number(container.get("data-scroll-width"))
                              > _number(container.get("data-client-width")))
            not_scrolled = not _number(container.get("data-scroll-left"))
        else:
            has_scroll_bar = container.scroll_height > container.client_height
            not_scrolled = not container.scroll_top
        show_marker = has_scroll_bar and not_scrolled

        marker = container.find(f"{MORE_SCROLL} {direction}", child=True)
        if marker is not None:
            marker.toggle_class("hidden", not show_marker)
        elif show_marker:
            arrow = "▸" if horizontal else "▾"
            container.append(container.create("div", f"{MORE_SCROLL} {direction}", f"More{arrow}"))

    def change_topics(self, topic: str) -> None:
        """Show classification help (``lcc``) or the default help topics."""
        display = self._view.find("shelf-browse display")
        content = display.find("help-content") if display is not None else None
        if content is None:
            return
        to_lcc = topic == "lcc"
        for item in content.children():
            lcc_topic = any(name.startswith(LCC_TOPIC_PREFIX) for name in item.classes)
            make_visible = lcc_topic if to_lcc else not lcc_topic
            if make_visible and item.has_class("hidden"):
                item.remove_class("hidden").add_class("visible")
            elif not make_visible and item.has_class("visible"):
                item.remove_class("visible").add_class("hidden")


def _number(value: Optional[str]) -> float:
    try:
        return float(value) if value else 0.0
    except ValueError:
        return 0.0
