from __future__ import annotations

import logging
import re
from functools import partial
from typing import Any, Callable, Optional, Tuple, Union

from shelf_browse.core.config_resolver import ConfigResolver
from shelf_browse.core.exceptions import MissingElementError, ShelfBrowseError, TransportError
from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.geometry import item_info_height
from shelf_browse.core.models import ElementTarget, LiteralTarget, Motion, UrlTarget, as_target, resolve_target
from shelf_browse.core.services.fetch_service import FetchHandle
from shelf_browse.core.url_utils import append_parameters, remove_parameters
from shelf_browse.ui.coordinators.base import find_display, rebind
from shelf_browse.ui.coordinators.motion_indicator import MotionIndicator
from shelf_browse.ui.host import HostWindow
from shelf_browse.ui.view import ElementHandle, ViewDocument, css_number, extract_root

logger = logging.getLogger(__name__)

__all__ = ["PagingEngine", "infer_motion", "shelf_key_order"]

# Query parameters managed by build_url; stale copies are dropped from the base URL.
_MANAGED_PARAMETERS = ("skip", "popup", "width", "extra_metadata")

_DIGITS = re.compile(r"(\d+)")

Target = Union[str, ElementHandle, UrlTarget, None]


def shelf_key_order(key: str) -> Tuple[Tuple[int, Any], ...]:
    """Sort key for shelf keys comparing digit runs numerically."""
    parts = []
    for chunk in _DIGITS.split(str(key)):
        if not chunk:
            continue
        parts.append((0, int(chunk)) if chunk.isdigit() else (1, chunk))
    return tuple(parts)


def infer_motion(key: Optional[str], first: Optional[str], last: Optional[str]) -> Optional[Motion]:
    """Direction of travel to reach *key* from the visible range ``first..last``."""
    if not key:
        return None
    target = shelf_key_order(key)
    if first and target <= shelf_key_order(first):
        return "left"
    if last and target >= shelf_key_order(last):
        return "right"
    return None


class PagingEngine:
    """Replace the shelf content with another window of the virtual shelf.

    Every load is stamped with ``FeatureStatus.request_seq``; a response that
    arrives after a newer request was issued is discarded.  A failed load
    leaves the current page in place and adds a retry button.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
    host : HostWindow
        Supplies the viewport, the current URL and ``run_in_thread``.
    resolver : ConfigResolver
        Produces the effective properties used to build request URLs.
    motion : MotionIndicator
    on_replaced : Callable[[], None]
        Invoked after new content was swapped in (re-attaches handlers).
    on_popup_resize : Callable[[str], None], optional
        Recreates the modal overlay for a URL (popup mode resizes).
    """

    def __init__(
        self,
        *,
        session: ShelfBrowseSession,
        view: ViewDocument,
        host: HostWindow,
        resolver: ConfigResolver,
        motion: MotionIndicator,
        on_replaced: Callable[[], None],
        on_popup_resize: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._session = session
        self._view = view
        self._host = host
        self._resolver = resolver
        self._motion = motion
        self._on_replaced = on_replaced
        self.on_popup_resize = on_popup_resize
        self._handle: Optional[FetchHandle] = None

    # -------------------------------------------------------------- Public API
    def build_url(self, target: Target = None, **overrides: Any) -> str:
        """Resolve *target* into the request URL and record base/full URLs."""
        status = self._session.status
        url = resolve_target(as_target(target))
        if not url:
            url = self._host.current_url()
            logger.debug("build_url: defaulting to current url %s", url)
        status.base_url = url

        properties = self._resolver.effective_properties(status, self._host.viewport(), **overrides)
        args: dict = {}
        if properties.skip:
            args["skip"] = list(properties.skip)
        if properties.popup is not None:
            args["popup"] = properties.popup
        if properties.items_across > 0:
            args["width"] = properties.items_across
        if properties.extra_metadata is not None:
            args["extra_metadata"] = properties.extra_metadata

        full_url = append_parameters(remove_parameters(url, _MANAGED_PARAMETERS), args)
        status.full_url = full_url
        return full_url

    def load(self, url: Optional[str]) -> Optional[FetchHandle]:
        """Fetch the shelf window at *url* and swap it into the display."""
        if not url:
            logger.error("load: no url")
            return None
        return self._fetch(self.build_url(LiteralTarget(url)))

    def goto_page(self, target: Target, motion: Optional[Motion] = None) -> Optional[FetchHandle]:
        """Show the motion indicator and load the page named by *target*."""
        resolved = as_target(target)
        if isinstance(resolved, ElementTarget):
            url = resolved.element.get("data-path")
        else:
            url = resolve_target(resolved)
        logger.debug("goto_page %s %s", motion or "", url)
        if not url:
            return None
        self._motion.show(motion)
        return self.load(url)

    def goto_target_page(self, target: Optional[ElementHandle]) -> Optional[FetchHandle]:
        """Load the page of *target*, inferring motion from its shelf key."""
        if target is None:
            logger.error("goto_target_page: no target")
            return None
        key = target.get(self._session.config.shelf_key_attribute)
        first, last = self.current_range()
        return self.goto_page(target, infer_motion(key, first, last))

    def page(self, direction: str, count: int = 1) -> bool:
        """Activate the page control for *direction* stepping *count* pages."""
        display = find_display(self._view, "page")
        if display is None:
            return False
        control = display.find(f"page-{direction}", attrs={"data-step": str(count)})
        logger.debug("page %s %d", direction, count)
        if control is None:
            logger.debug("page: no .page-%s control for step %d", direction, count)
            return False
        control.trigger("click")
        return True

    def current_range(self) -> Tuple[Optional[str], Optional[str]]:
        display = self._view.find("shelf-browse display")
        if display is None:
            return None, None
        attr = self._session.config.shelf_key_attribute
        first = display.find("current-range-first")
        last = display.find("current-range-last")
        return (first.get(attr) if first is not None else None,
                last.get(attr) if last is not None else None)

    def cancel(self) -> None:
        """Drop the in-flight response, if any, and clear the busy state."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        self._session.status.request_seq += 1
        self._finish(revert=True)

    # ------------------------------------------------------------ Resizing
    def resize_display(self) -> bool:
        """Page mode: reload when the window now holds a different number of tiles."""
        status = self._session.status
        if not status.active:
            logger.debug("ignoring resize: inactive")
            return False
        if not status.base_url:
            logger.debug("ignoring resize: no base_url")
            return False
        if status.browser_resizing:
            logger.debug("ignoring resize: already resizing")
            return False
        if status.defer_resize():
            logger.debug("deferring resize: overlay open")
            return False

        self.set_display_size()
        old_items = len(self._view.find_all("item-tile"))
        new_items = self.capacity()
        if old_items == new_items:
            logger.debug("ignoring resize: no change to items (%d)", old_items)
            return False

        logger.info("Shelf page resized: %d -> %d items", old_items, new_items)
        status.browser_resizing = True
        self.goto_page(status.base_url)
        return True

    def resize_popup(self) -> bool:
        """Popup mode: recreate the modal at the new window size."""
        status = self._session.status
        if not status.active:
            logger.debug("ignoring resize: inactive")
            return False
        if not status.base_url:
            logger.debug("ignoring resize: no base_url")
            return False
        if status.loading:
            logger.debug("ignoring resize: loading")
            return False
        if status.defer_resize():
            logger.debug("deferring resize: overlay open")
            return False
        if self.on_popup_resize is None:
            logger.warning("resize_popup: no modal to resize")
            return False
        logger.info("Shelf popup resized")
        self.on_popup_resize(status.base_url)
        return True

    def capacity(self) -> int:
        """Number of tiles the current viewport can hold along the shelf."""
        properties = self._resolver.effective_properties(self._session.status, self._host.viewport())
        return properties.items_across if properties.horizontal else properties.items_down

    def set_display_size(self) -> None:
        """Fit the display to the window width; scale the item-info height."""
        display = find_display(self._view, "set_display_size")
        if display is None:
            return
        viewport = self._host.viewport()
        reserved = sum(
            css_number(display.css(name)) or 0.0
            for name in ("margin-left", "margin-right", "border-left-width", "border-right-width")
        )
        width = viewport.width - reserved
        if viewport.scrollbars_reserve_space:
            width -= viewport.scroll_width
        display.set_css("width", f"{width:g}px")

        item_info = display.find("item-info")
        if item_info is not None:
            height = item_info_height(self._session.geometry, viewport.height)
            item_info.set_css("height", f"{height:g}px")

    # ------------------------------------------------------------- Internals
    def _fetch(self, path: str) -> Optional[FetchHandle]:
        display = find_display(self._view, "load")
        if display is None:
            return None
        status = self._session.status
        status.request_seq += 1
        seq = status.request_seq
        status.loading = True
        display.set("aria-busy", "true")
        self._clear_load_error(display)

        logger.debug("load #%d %s", seq, path)
        fetch = self._session.fetch_service
        handle = fetch.fetch_async(
            self._host.run_in_thread,
            lambda: fetch.get_text(path),
            partial(self._loaded, seq, path),
            partial(self._failed, seq, path),
            url=path,
        )
        # A synchronous delivery has already finished with this request.
        if seq == status.request_seq and status.loading:
            self._handle = handle
        return handle

    def _loaded(self, seq: int, path: str, markup: str) -> None:
        status = self._session.status
        if seq != status.request_seq:
            logger.debug("discarding stale response #%d for %s", seq, path)
            return
        self._handle = None
        failed = False
        try:
            display = self._view.find("shelf-browse display")
            if display is None:
                raise MissingElementError(".shelf-browse.display", "load")
            new_root = extract_root(self._view, markup)
            if new_root is None:
                raise MissingElementError(".shelf-browse.display in response", "load")
            display.replace_children_from(new_root)
            self._motion.discard()
            status.clear_overlays()
            status.load_failed = False
            self._on_replaced()
        except ShelfBrowseError as exc:
            logger.error("%s", exc)
            failed = True
            self._show_failure(path)
        finally:
            # attach() may have issued a newer request; its flags are not ours to clear.
            if seq == status.request_seq:
                self._finish(revert=failed)

    def _failed(self, seq: int, path: str, error: TransportError) -> None:
        status = self._session.status
        if seq != status.request_seq:
            logger.debug("discarding stale failure #%d for %s", seq, path)
            return
        self._handle = None
        logger.warning("load failed: %s", error)
        try:
            self._show_failure(path)
        finally:
            self._finish(revert=True)

    def _finish(self, *, revert: bool) -> None:
        status = self._session.status
        status.loading = False
        if revert or not status.popup:
            status.browser_resizing = False
        if revert:
            self._motion.revert()
        display = self._view.find("shelf-browse display")
        if display is not None:
            display.set("aria-busy", "false")

    def _show_failure(self, path: str) -> None:
        status = self._session.status
        status.load_failed = True
        display = self._view.find("shelf-browse display")
        if display is None:
            return
        self._clear_load_error(display)
        message = self._session.label("retry", "Unable to load this section of the shelf. Try again.")
        box = display.create("div", "load-error", role="alert")
        button = display.create("div", "retry-button", message, role="button", tabindex="0")
        button.set("data-path", path)
        box.append(button)
        display.prepend(box)
        rebind(button, "click", lambda event: self._retry(event.target))

    def _retry(self, button: Optional[ElementHandle]) -> None:
        path = button.get("data-path") if button is not None else None
        if not path:
            return
        logger.info("Retrying %s", path)
        self._motion.show()
        self._fetch(path)

    @staticmethod
    def _clear_load_error(display: ElementHandle) -> None:
        for box in display.find_all("load-error", child=True):
            box.remove()
