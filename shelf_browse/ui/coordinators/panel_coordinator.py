from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.ui.view import ElementHandle, ViewEvent, css_number

logger = logging.getLogger(__name__)

__all__ = ["PanelCoordinator", "PanelSpec", "PANELS", "ITEM_RANGES", "PAGE_SCROLLER"]

HIGHLIGHT_COLOR = "orange"


@dataclass(frozen=True)
class PanelSpec:
    """A resizable panel and the splitter that drags it."""

    name: str
    panel_class: str
    splitter_class: str
    dimension: str
    # The initial size is also the smallest size a drag may leave.
    floor: bool = False

    @property
    def status_field(self) -> str:
        return f"{self.name}_{self.dimension}"

    @property
    def init_field(self) -> str:
        return f"{self.status_field}_init"

    @property
    def default_field(self) -> str:
        return f"default_{self.status_field}"


ITEM_RANGES = PanelSpec("item_ranges", "item-ranges", "item-info-separator", "width")
PAGE_SCROLLER = PanelSpec("page_scroller", "page-scroller", "page-scroller-separator", "height", floor=True)
PANELS: Tuple[PanelSpec, ...] = (ITEM_RANGES, PAGE_SCROLLER)


class PanelCoordinator:
    """Splitter handling for the item-ranges and page-scroller panels.

    The first attach records each panel's initial size; later attaches
    re-apply a size the user set by dragging.  Sizes live in
    ``FeatureStatus`` so they survive content replacement.

    Parameters
    ----------
    session : ShelfBrowseSession
    on_ranges_changed : Callable[[], None], optional
        Called after the item-ranges width changed (refreshes the details scroll).
    """

    def __init__(self, *, session: ShelfBrowseSession,
                 on_ranges_changed: Optional[Callable[[], None]] = None) -> None:
        self._session = session
        self.on_ranges_changed = on_ranges_changed

    def attach(self, display: ElementHandle) -> None:
        for spec in PANELS:
            panel = display.find(spec.panel_class)
            splitter = display.find(spec.splitter_class)
            if splitter is not None:
                self._wire_splitter(spec, splitter, panel)
            if panel is not None:
                self.apply_size(spec, panel)

    # ---------------------------------------------------------------- sizes
    def apply_size(self, spec: PanelSpec, panel: ElementHandle) -> None:
        """Capture the initial size once; afterwards restore any manual size."""
        status = self._session.status
        if not getattr(status, spec.init_field):
            value = panel.css(spec.dimension)
            setattr(status, spec.init_field, value)
            if spec.floor:
                status.page_scroller_height_min = css_number(value) or 0.0
            logger.debug("%s %s initial %s", spec.name, spec.dimension, value)
            return
        value = getattr(status, spec.status_field)
        if value:
            panel.set_css(spec.dimension, value)
            logger.debug("%s %s restored %s", spec.name, spec.dimension, value)

    def reset(self, spec: PanelSpec, panel: Optional[ElementHandle]) -> None:
        """Return *panel* to its initial size and forget the manual size."""
        status = self._session.status
        value = getattr(status, spec.init_field) or getattr(self._session.geometry, spec.default_field)
        if panel is not None:
            panel.set_css(spec.dimension, value)
        setattr(status, spec.status_field, None)
        logger.debug("%s reset to %s", spec.name, value)
        self._changed(spec)

    # ------------------------------------------------------------- splitter
    def highlight(self, splitter: ElementHandle) -> None:
        if not self._session.status.splitter_dragging:
            splitter.set_css("background-color", HIGHLIGHT_COLOR)
            splitter.set("title", self._session.label("splitter_tooltip"))

    def unhighlight(self, splitter: ElementHandle) -> None:
        if not self._session.status.splitter_dragging:
            splitter.set_css("background-color", "transparent")

    def drag_start(self, spec: PanelSpec, splitter: ElementHandle, event: Optional[ViewEvent] = None) -> None:
        if event is not None:
            event.prevent_default()
        self.unhighlight(splitter)
        self._session.status.splitter_dragging = True
        logger.debug("%s drag start", spec.name)

    def drag_end(self, spec: PanelSpec, panel: Optional[ElementHandle], size: Optional[str] = None) -> None:
        """Record the dragged size of *panel* (*size* is applied first when given)."""
        status = self._session.status
        try:
            if panel is None:
                return
            if size:
                panel.set_css(spec.dimension, size)
            value = panel.css(spec.dimension)
            if spec.floor:
                number = css_number(value)
                if number is not None and number < status.page_scroller_height_min:
                    value = f"{status.page_scroller_height_min:g}px"
                    panel.set_css(spec.dimension, value)
            setattr(status, spec.status_field, value)
            logger.debug("%s %s assigned %s", spec.name, spec.dimension, value)
        finally:
            status.splitter_dragging = False
        self._changed(spec)

    def _wire_splitter(self, spec: PanelSpec, splitter: ElementHandle, panel: Optional[ElementHandle]) -> None:
        splitter.unbind()
        splitter.bind("mouseenter", lambda event: self.highlight(splitter))
        splitter.bind("mouseleave", lambda event: self.unhighlight(splitter))
        splitter.bind("dblclick", lambda event: self.reset(spec, panel))
        splitter.bind("dragstart", lambda event: self.drag_start(spec, splitter, event))
        splitter.bind("dragend", lambda event: self.drag_end(spec, panel, event.data.get("size")))

    def _changed(self, spec: PanelSpec) -> None:
        if spec is ITEM_RANGES and self.on_ranges_changed is not None:
            self.on_ranges_changed()
