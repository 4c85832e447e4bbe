"""Bridge between a host modal window and the shelf browse lifecycle.

The modal reports five lifecycle stages; each one maps onto the feature
status and the controller:

- ``opened``   -> widget active
- ``loaded``   -> active and loading; the modal is resized when the window
  geometry changed since it was created
- ``complete`` -> handlers attached, loading finished
- ``cleanup``  -> handlers detached, open overlays forgotten
- ``closed``   -> widget inactive
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable

from shelf_browse.core.models import ElementTarget, as_target, resolve_target
from shelf_browse.ui.coordinators.base import rebind
from shelf_browse.ui.controllers.shelf_browse_controller import ShelfBrowseController
from shelf_browse.ui.view import ElementHandle

logger = logging.getLogger(__name__)

__all__ = ["ModalCallbacks", "ModalHostAdapter", "ModalWindow"]

LINKS_CLASSES = "shelf-browse links"


@dataclass
class ModalCallbacks:
    """Lifecycle hooks handed to :meth:`ModalWindow.open`."""

    on_open: Callable[[], None]
    on_load: Callable[[], None]
    on_complete: Callable[[], None]
    on_cleanup: Callable[[], None]
    on_closed: Callable[[], None]


@runtime_checkable
class ModalWindow(Protocol):
    """Modal overlay provided by the hosting application."""

    def open(self, url: str, *, width: str, height: str, callbacks: ModalCallbacks) -> None:
        ...

    def resize(self, width: str, height: str) -> None:
        ...

    def close(self) -> None:
        ...


class ModalHostAdapter:
    """Run the shelf browse widget inside a host modal window.

    Parameters
    ----------
    controller : ShelfBrowseController
    window : ModalWindow
    """

    def __init__(self, controller: ShelfBrowseController, window: ModalWindow) -> None:
        self.controller = controller
        self.window = window
        self._options: dict = {}
        self._geometry: Optional[Tuple[str, str]] = None
        controller.close_modal = self.close
        controller.paging.on_popup_resize = self.recreate

    @property
    def _status(self):
        return self.controller.session.status

    # ------------------------------------------------------------ lifecycle
    def opened(self) -> None:
        logger.debug("modal opened")
        self._status.active = True

    def loaded(self) -> None:
        """Called after opening and after each reload of the modal content."""
        logger.debug("modal loaded")
        status = self._status
        status.active = True
        status.loading = True
        geometry = self._popup_geometry()
        if geometry != self._geometry:
            self._geometry = geometry
            self.window.resize(*geometry)

    def complete(self) -> None:
        logger.debug("modal complete")
        try:
            self.controller.attach(popup=True)
        finally:
            self._status.loading = False

    def cleanup(self) -> None:
        logger.debug("modal cleanup")
        self.controller.detach()
        self._status.clear_overlays()

    def closed(self) -> None:
        logger.debug("modal closed")
        self._status.active = False

    def callbacks(self) -> ModalCallbacks:
        return ModalCallbacks(
            on_open=self.opened,
            on_load=self.loaded,
            on_complete=self.complete,
            on_cleanup=self.cleanup,
            on_closed=self.closed,
        )

    # ---------------------------------------------------------------- popup
    def create_popup(self, target: Any, **options: Any) -> Optional[str]:
        """Open the modal on the shelf browse page named by *target*.

        *target* is a URL or a link element (``data-path`` then ``href``).
        Returns the URL the modal was opened with.
        """
        url = resolve_target(as_target(target))
        if not url:
            logger.error("create_popup: no url")
            return None
        self._options = {"popup": True, **options}
        status = self._status
        status.popup = True
        path = self.controller.paging.build_url(url, **self._options)
        self._geometry = self._popup_geometry()
        logger.info("Opening shelf browse popup %s", path)
        self.window.open(path, width=self._geometry[0], height=self._geometry[1], callbacks=self.callbacks())
        return path

    def recreate(self, url: str) -> None:
        """Resize reaction in popup mode: reopen the modal at the new geometry."""
        logger.debug("recreating popup for %s", url)
        self.window.close()
        self.create_popup(url, **{k: v for k, v in self._options.items() if k != "popup"})

    def close(self) -> None:
        self.window.close()

    def setup_links(self, root: ElementHandle) -> int:
        """Make shelf browse links under *root* open the popup; returns the count wired."""
        if self._status.active:
            logger.debug("setup_links: skipping while shelf browse is active")
            return 0
        count = 0
        containers = [root] if set(LINKS_CLASSES.split()) <= set(root.classes) else root.find_all(LINKS_CLASSES)
        for container in containers:
            links = container.find_all("browse-button")
            for call_number in container.find_all("call-number browse"):
                links.extend(call_number.find_all(tag="a", child=True))
            for link in links:
                link.set("role", "button")
                link.set("aria-haspopup", "dialog")
                rebind(link, "click", lambda event, c=link: self.create_popup(ElementTarget(c)))
                count += 1
        return count

    def _popup_geometry(self) -> Tuple[str, str]:
        controller = self.controller
        properties = controller.resolver.effective_properties(
            controller.session.status, controller.host.viewport(), **self._options)
        return properties.popup_width, properties.popup_height
