from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from shelf_browse.core.config_resolver import ConfigResolver
from shelf_browse.core.debounce import Debounced, debounce
from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import DecorationFeature, OverlayKind, parse_skip
from shelf_browse.core.url_utils import add_parameter
from shelf_browse.ui.coordinators.base import find_display, rebind
from shelf_browse.ui.coordinators.decorations import DecorationProvider, PageDecorations, resolve_skip
from shelf_browse.ui.coordinators.focus_coordinator import FocusCoordinator
from shelf_browse.ui.coordinators.help_overlay import HelpOverlay
from shelf_browse.ui.coordinators.keyboard import KeyboardNavigator
from shelf_browse.ui.coordinators.lcc_tree_coordinator import LccTreeCoordinator
from shelf_browse.ui.coordinators.motion_indicator import MotionIndicator
from shelf_browse.ui.coordinators.overlay_coordinator import OverlayManager
from shelf_browse.ui.coordinators.paging_coordinator import PagingEngine
from shelf_browse.ui.coordinators.panel_coordinator import PanelCoordinator
from shelf_browse.ui.coordinators.request_dialog import RequestDialog
from shelf_browse.ui.host import KEY_EVENT, RESIZE_EVENT, HostWindow
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["ShelfBrowseController"]

RESIZE_DEBOUNCE_MS = 500

SkipOption = Union[str, Iterable[str], None]


class ShelfBrowseController:
    """Attach and detach the shelf browse widget to the current content.

    Owns one coordinator per concern and wires them to the view after each
    content replacement.  Window-level key and resize handlers are installed
    once per activation no matter how often :meth:`attach` runs.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
        Document holding the ``.shelf-browse.display`` markup.
    host : HostWindow
    resolver : ConfigResolver
    decoration_providers : Mapping[DecorationFeature, DecorationProvider], optional
        Host-supplied page decorations (availability, covers, ...).
    """

    def __init__(
        self,
        *,
        session: ShelfBrowseSession,
        view: ViewDocument,
        host: HostWindow,
        resolver: ConfigResolver,
        decoration_providers: Optional[Mapping[DecorationFeature, DecorationProvider]] = None,
    ) -> None:
        self.session = session
        self.view = view
        self.host = host
        self.resolver = resolver
        self.close_modal: Optional[Callable[[], None]] = None
        self._resize: Optional[Debounced] = None

        self.overlays = OverlayManager(session=session, view=view)
        self.help = HelpOverlay(session=session, view=view, overlays=self.overlays)
        self.overlays.help_toggle = self.help.toggle
        self.decorations = PageDecorations(session=session, host=host, providers=decoration_providers)
        self.motion = MotionIndicator(session=session, view=view)
        self.paging = PagingEngine(
            session=session,
            view=view,
            host=host,
            resolver=resolver,
            motion=self.motion,
            on_replaced=self.attach,
        )
        self.focus = FocusCoordinator(session=session, view=view,
                                      on_details_updated=self.decorations.details_updated)
        self.keyboard = KeyboardNavigator(session=session, focus=self.focus, paging=self.paging,
                                          origin_getter=self.origin)
        self.dialog = RequestDialog(session=session, view=view, host=host, overlays=self.overlays)
        self.lcc = LccTreeCoordinator(
            session=session,
            view=view,
            host=host,
            overlays=self.overlays,
            goto_page=self.paging.goto_page,
            change_topics=self.help.change_topics,
        )
        self.panels = PanelCoordinator(session=session,
                                       on_ranges_changed=lambda: self.focus.update_item_details())

    # -------------------------------------------------------------- Lookups
    def origin(self) -> Optional[ElementHandle]:
        display = self.view.find("shelf-browse display")
        return display.find("origin") if display is not None else None

    # ------------------------------------------------------------ Lifecycle
    def start_page(self, url: Optional[str] = None) -> bool:
        """Page-load entry point; returns True when *url* is a shelf browse page.

        Query options of *url* are applied to the configuration.  A direct
        page (not a popup) is activated and attached immediately; a popup is
        attached by the modal host once its content is complete.
        """
        url = url or self.host.current_url()
        self.session.config = self.resolver.update_url(url)
        status = self.session.status
        status.base_url = url
        status.full_url = url
        if self.session.config.feature_path not in (url or ""):
            logger.debug("not a shelf browse page: %s", url)
            return False

        options = self.resolver.url_options
        if "popup" in options:
            status.popup = bool(options["popup"])
        if options.get("skip"):
            status.skip = resolve_skip(options["skip"])

        if status.popup:
            logger.info("Shelf browse popup: %s", url)
        else:
            logger.info("Shelf browse page: %s", url)
            status.active = True
            self.attach(popup=False)
        return True

    def attach(self, popup: Optional[bool] = None, skip: SkipOption = None) -> None:
        """Wire handlers to the current content; safe to call repeatedly."""
        operation = "attach"
        status = self.session.status
        if popup is None:
            popup = status.popup if status.popup is not None else False
        status.popup = popup
        skip_names = parse_skip(skip)
        if skip_names:
            status.skip = resolve_skip(skip_names)

        # A direct page request cannot know how many tiles fit the window.
        if not popup and not status.skip:
            self.paging.resize_display()

        self._install_window_handlers(popup)

        display = find_display(self.view, operation)
        if display is None:
            return
        header = display.find("header-area", child=True)
        controls = header.children() if header is not None else []
        if not controls:
            logger.error("%s: no .header-area; aborting", operation)
            return

        self._wire_header(controls, popup)
        self._wire_help(display)
        self._wire_navigation(display)
        self._wire_items(display)
        self.panels.attach(display)
        self._wire_request_links(display)
        self.focus.show_focus_details()
        self.decorations.run(display, popup=popup)
        self.lcc.ensure_loaded()

    def detach(self) -> None:
        """Remove the window-level handlers and drop in-flight work."""
        status = self.session.status
        if status.key_handler_installed:
            self.host.unbind(KEY_EVENT)
            status.key_handler = None
        if status.resize_handler_installed:
            self.host.unbind(RESIZE_EVENT)
            status.resize_handler = None
        if self._resize is not None:
            self._resize.cancel()
            self._resize = None
        self.paging.cancel()
        self.decorations.cancel()
        status.clear_overlays()

    def handle_key(self, event: Any) -> bool:
        """Window key handler: the tree overlay gets keys first while it is open."""
        if self.session.status.overlay_open(OverlayKind.CLASSIFICATION_TREE):
            return self.lcc.handle_key(event)
        return self.keyboard.handle(event)

    def debug_snapshot(self) -> Dict[str, Any]:
        """Configuration, effective properties and status for diagnostics."""
        properties = self.resolver.effective_properties(self.session.status, self.host.viewport())
        return {
            "config": self.session.config.as_dict(),
            "properties": {f.name: getattr(properties, f.name) for f in fields(properties) if f.name != "config"},
            "status": self.session.status.snapshot(),
        }

    # ------------------------------------------------------------- Internals
    def _install_window_handlers(self, popup: bool) -> None:
        status = self.session.status
        if not status.key_handler_installed:
            status.key_handler = self.handle_key
            self.host.bind(KEY_EVENT, status.key_handler)
        if not status.resize_handler_installed:
            status.resize_handler = self.paging.resize_popup if popup else self.paging.resize_display
            self._resize = debounce(status.resize_handler, RESIZE_DEBOUNCE_MS,
                                    after=self.host.after, after_cancel=self.host.after_cancel)
            self.host.bind(RESIZE_EVENT, self._window_resized)

    def _window_resized(self, event: Any = None) -> None:
        if self._resize is not None:
            self._resize()

    def _wire_header(self, controls, popup: bool) -> None:
        for control in controls:
            if control.has_class("help-button"):
                rebind(control, "click", lambda event, c=control: self.help.toggle(c))
            elif control.has_class("lcc-button"):
                rebind(control, "click", lambda event, c=control: self.lcc.toggle(c))
            elif control.has_class("title-text"):
                rebind(control, "click", lambda event: logger.info("Shelf browse state: %s", self.debug_snapshot()))
            elif control.has_class("origin"):
                rebind(control, "click", lambda event, c=control: self.paging.goto_target_page(c))
            elif control.has_class("close-button"):
                if popup:
                    rebind(control, "click", lambda event: self._close_popup())
                else:
                    control.set("title", self.session.label("close_disabled_tooltip"))
                    control.set("disabled", "disabled")

    def _close_popup(self) -> None:
        if self.close_modal is None:
            logger.warning("close: no modal window to close")
            return
        self.close_modal()

    def _wire_help(self, display: ElementHandle) -> None:
        if not self.session.config.show_more_scroll:
            return
        container = display.find("help-container")
        if container is not None:
            rebind(container, "scroll",
                   lambda event: self.help.update_more_scroll(container, self.help.scroll_direction))

    def _wire_navigation(self, display: ElementHandle) -> None:
        controls = display.find("page-controls")
        for control in controls.children() if controls is not None else []:
            if control.has_class("page-forward"):
                rebind(control, "click", lambda event, c=control: self.paging.goto_page(c, "right"))
            elif control.has_class("page-reverse"):
                rebind(control, "click", lambda event, c=control: self.paging.goto_page(c, "left"))
        for frame in display.find_all("range-frame"):
            for link in frame.find_all(attrs={"data-path": None}):
                rebind(link, "click", lambda event, c=link: self.paging.goto_target_page(c))

    def _wire_items(self, display: ElementHandle) -> None:
        for tile in display.find_all("item-tile"):
            rebind(tile, "click", lambda event, t=tile: self.focus.set_focus(t))
            rebind(tile, "dblclick", lambda event, t=tile: self.focus.set_focus(t, "toggle"))
            rebind(tile, "mouseenter", lambda event, t=tile: self.focus.add_temporary(t))
            rebind(tile, "mouseleave", lambda event: self.focus.remove_temporary())
            for item in tile.find_all("item"):
                rebind(item, "focus", lambda event, t=tile: self.focus.set_focus(t))

    def _wire_request_links(self, display: ElementHandle) -> None:
        areas = display.find_all("item-details") + display.find_all("item-tile")
        for area in areas:
            for link in area.find_all(tag="a"):
                if not (link.has_class("initiate-sc-request")
                        or (link.has_class("initiate-request") and link.has_class("no-popup"))):
                    continue
                href = link.get("href")
                if href:
                    if not link.get("data-path"):
                        link.set("data-path", href)
                    link.remove_attr("href")
                url = link.get("data-path")
                if url and "popup=true" not in url:
                    link.set("data-path", add_parameter(url, "popup", True))
                link.set("aria-haspopup", "dialog")
                rebind(link, "click", lambda event, c=link: self.dialog.show(c))
