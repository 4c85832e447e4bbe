from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import OverlayKind
from shelf_browse.ui.coordinators.base import find_display
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["OverlayManager", "OVERLAY_CLASSES", "CLOSE_MARKER"]

CLOSE_MARKER = "close"

# Dimming backdrop class per overlay identity.
OVERLAY_CLASSES: Dict[OverlayKind, str] = {
    OverlayKind.HELP: "help-overlay",
    OverlayKind.CLASSIFICATION_TREE: "lcc-overlay",
    OverlayKind.REQUEST_DIALOG: "dialog-overlay",
}

CloseFunction = Callable[[Optional[ElementHandle], Optional[ElementHandle]], None]


class OverlayManager:
    """Shared open/close lifecycle of the exclusive panels over the shelf.

    Opening records the overlay in ``FeatureStatus.open_overlays`` and dims
    the display; closing reverses that and, once no overlay remains, replays
    a resize that arrived while the display was covered.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
    help_toggle : Callable[[ElementHandle], None], optional
        Wired to the help button of every button tray.
    """

    def __init__(self, *, session: ShelfBrowseSession, view: ViewDocument,
                 help_toggle: Optional[Callable[[ElementHandle], None]] = None) -> None:
        self._session = session
        self._view = view
        self.help_toggle = help_toggle

    # -------------------------------------------------------------- Backdrop
    def add_overlay(self, kind: OverlayKind) -> None:
        display = find_display(self._view, "add_overlay")
        if display is not None:
            display.append(display.create("div", OVERLAY_CLASSES[kind]))
        self._session.status.add_overlay(kind)

    def remove_overlay(self, kind: OverlayKind) -> None:
        display = self._view.find("shelf-browse display")
        if display is not None:
            for backdrop in display.find_all(OVERLAY_CLASSES[kind]):
                backdrop.remove()
        self._session.status.remove_overlay(kind)

    # ------------------------------------------------------------- Lifecycle
    def open(self, kind: OverlayKind, control: Optional[ElementHandle],
             container: Optional[ElementHandle], close_function: Optional[CloseFunction] = None) -> None:
        """Dim the display, mark *control* as the close affordance and show *container*."""
        logger.debug("open overlay %s", kind.value)
        self.add_overlay(kind)
        if control is not None:
            control.add_class(CLOSE_MARKER).set("aria-expanded", "true")
        if container is not None:
            self.finalize_button_tray(control, container, close_function)
            container.show().focus()

    def close(self, kind: OverlayKind, control: Optional[ElementHandle],
              container: Optional[ElementHandle]) -> None:
        """Hide *container*, restore *control* and replay a deferred resize."""
        logger.debug("close overlay %s", kind.value)
        if control is not None:
            control.remove_class(CLOSE_MARKER).set("aria-expanded", "false")
        if container is not None:
            container.hide()
        self.remove_overlay(kind)
        self.replay_pending_resize()

    def is_open(self, kind: OverlayKind) -> bool:
        return self._session.status.overlay_open(kind)

    def replay_pending_resize(self) -> bool:
        """Run the installed resize handler once if a resize was deferred."""
        status = self._session.status
        if not status.take_pending_resize():
            return False
        handler = status.resize_handler
        if handler is None:
            logger.debug("pending resize dropped: no resize handler installed")
            return False
        logger.debug("replaying deferred resize")
        handler()
        return True

    def finalize_button_tray(self, control: Optional[ElementHandle], container: ElementHandle,
                             close_function: Optional[CloseFunction]) -> None:
        """Wire the tray's help and close buttons the first time only."""
        tray = container.find("button-tray", child=True)
        if tray is None or tray.has_class("complete"):
            return
        tray.add_class("complete")
        help_button = tray.find("help-button", child=True)
        if help_button is not None and self.help_toggle is not None:
            help_button.bind("click", lambda event: self.help_toggle(event.target))
        close_button = tray.find("close-button", child=True)
        if close_button is not None and close_function is not None:
            close_button.bind("click", lambda event: close_function(control, container))

    @staticmethod
    def is_close_affordance(control: Optional[ElementHandle]) -> bool:
        return control is not None and control.has_class(CLOSE_MARKER)
