from __future__ import annotations

import logging
from typing import Callable, List, Optional

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import SCROLL_MODES
from shelf_browse.ui.coordinators.base import find_display
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["FocusCoordinator", "focus_id", "tile_id"]

FOCUS_CLASS = "focus"


def focus_id(tile: Optional[ElementHandle]) -> int:
    """Focus id of a tile; placeholder tiles (no real item) report -1."""
    if tile is None:
        return -1
    try:
        value = int(tile.get("data-focus-id", "-1"))
    except (TypeError, ValueError):
        return -1
    return value if value >= 0 else -1


def tile_id(element: Optional[ElementHandle]) -> Optional[str]:
    return element.get("data-tile") if element is not None else None


class FocusCoordinator:
    """Keep the details pane in step with the focus item tile.

    The ``.item-metadata`` block of the focus tile lives inside
    ``.item-details`` while the tile has focus and is returned to its tile
    afterwards.  A hover preview is layered on top with the ``temporary``
    class and never changes which tile is the focus.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
    on_details_updated : Callable[[ElementHandle], None], optional
        Called with the details container after its content or scroll changed.
    """

    def __init__(
        self,
        *,
        session: ShelfBrowseSession,
        view: ViewDocument,
        on_details_updated: Optional[Callable[[ElementHandle], None]] = None,
    ) -> None:
        self._session = session
        self._view = view
        self.on_details_updated = on_details_updated

    # ------------------------------------------------------------- Lookups
    def tiles(self) -> List[ElementHandle]:
        display = self._view.find("shelf-browse display")
        return display.find_all("item-tile") if display is not None else []

    def details(self, operation: str = "details") -> Optional[ElementHandle]:
        display = find_display(self._view, operation)
        if display is None:
            return None
        return display.single("item-details", operation=operation)

    def tile_by_id(self, tid: Optional[str], operation: str = "tile_by_id") -> Optional[ElementHandle]:
        if not tid:
            logger.error("%s: no tile id", operation)
            return None
        for tile in self.tiles():
            if tile.get("data-tile") == tid:
                return tile
        logger.error("%s: missing .item-tile[data-tile=%s]", operation, tid)
        return None

    def focus_tile(self, operation: str = "focus_tile") -> Optional[ElementHandle]:
        """The tile marked as focus; a single unmarked tile is promoted."""
        tiles = self.tiles()
        for tile in tiles:
            if tile.has_class(FOCUS_CLASS):
                return tile
        if not tiles:
            logger.error("%s: missing .item-tile", operation)
            return None
        if len(tiles) > 1:
            logger.error("%s: %d .item-tile elements and none has focus", operation, len(tiles))
        logger.warning("%s: setting focus item", operation)
        tiles[0].add_class(FOCUS_CLASS)
        return tiles[0]

    @staticmethod
    def metadata(container: Optional[ElementHandle]) -> Optional[ElementHandle]:
        if container is None:
            return None
        return container.find("item-metadata")

    # --------------------------------------------------------- Public API
    def update_item_details(self, container: Optional[ElementHandle] = None,
                            scroll_override: Optional[str] = None) -> None:
        """Apply the scroll policy to the details pane.

        The mode is *scroll_override* when given; otherwise the checked scroll
        option radio button (the mode is then remembered), else the remembered
        or configured mode.
        """
        container = container or self.details("update_item_details")
        if container is None:
            return
        status = self._session.status

        radio_buttons: Optional[List[ElementHandle]] = None
        scroll = scroll_override or None
        if scroll is None:
            radio_buttons = container.find_all(tag="input", attrs={"value": None})
            radio_buttons = [b for b in radio_buttons if b.closest("scroll-options") is not None]
            for button in radio_buttons:
                if button.get("checked") is not None:
                    scroll = button.get("value")
                    break
        if scroll is None:
            scroll = status.details_scroll or self._session.config.details_scroll

        if scroll not in SCROLL_MODES:
            logger.warning("update_item_details: unexpected scroll mode %r", scroll)
        else:
            bottom = container.max_scroll
            if scroll == "top":
                position = 0.0
            elif scroll == "bottom":
                position = bottom
            else:
                position = 0.0 if container.scroll_top > bottom / 2 else bottom
            container.scroll_top = position

            if radio_buttons:
                status.details_scroll = scroll
                for button in radio_buttons:
                    if button.get("value") == scroll:
                        button.set("checked", "checked")
                    else:
                        button.remove_attr("checked")

        if self.on_details_updated is not None:
            self.on_details_updated(container)

    def show_focus_details(self) -> None:
        """Place the focus tile's metadata in the details pane (after each attach)."""
        operation = "show_focus_details"
        container = self.details(operation)
        if container is None:
            return
        old_metadata = self.metadata(container)
        old_tid = tile_id(old_metadata)

        focus = self.focus_tile(operation)
        new_tid = tile_id(focus)
        if old_tid and old_tid == new_tid:
            logger.debug("%s: already displaying tile %s", operation, old_tid)
            return

        new_metadata = self.metadata(focus)
        if new_metadata is None:
            logger.error("%s: focus item has no metadata", operation)
            return
        container.prepend(new_metadata.detach()).add_class("visible")
        self.update_item_details(container)

        if old_metadata is not None:
            self._return_metadata(old_metadata, operation)

    def set_focus(self, tile: Optional[ElementHandle], scroll_override: Optional[str] = None) -> None:
        operation = "set_focus"
        container = self.details(operation)
        if container is None:
            return
        self.remove_temporary()
        if tile is None:
            logger.error("%s: missing new item", operation)
            return
        if focus_id(tile) < 0:
            logger.debug("%s: placeholder tile %s", operation, tile_id(tile))

        if tile.has_class(FOCUS_CLASS):
            if scroll_override:
                self.update_item_details(container, scroll_override)
            return

        new_metadata = self.metadata(tile)
        if new_metadata is None:
            logger.error("%s: item has no metadata", operation)
            return
        old_tile = self.focus_tile(operation)
        old_metadata = self.metadata(container)

        container.prepend(new_metadata.detach()).add_class("visible")
        self.update_item_details(container, scroll_override)

        if old_metadata is not None:
            self._return_metadata(old_metadata, operation)

        if old_tile is not None:
            old_tile.remove_class(FOCUS_CLASS)
        tile.add_class(FOCUS_CLASS)

    def add_temporary(self, tile: Optional[ElementHandle], scroll_override: Optional[str] = None) -> None:
        """Preview *tile*'s metadata over the focus metadata (hover)."""
        operation = "add_temporary"
        container = self.details(operation)
        if container is None or tile is None:
            return
        old_metadata = self.metadata(container)
        old_tid = tile_id(old_metadata)
        if old_tid and old_tid == tile_id(tile):
            logger.debug("%s: already displaying tile %s", operation, old_tid)
            return

        new_metadata = self.metadata(tile)
        if new_metadata is None:
            logger.error("%s: item has no metadata", operation)
            return
        container.prepend(new_metadata.detach())
        new_metadata.add_class("temporary", "visible")
        self.update_item_details(container, scroll_override)

        if old_metadata is not None:
            old_metadata.remove_class("visible")

    def remove_temporary(self) -> None:
        """Return preview metadata to its tile and unmask the focus metadata."""
        operation = "remove_temporary"
        display = self._view.find("shelf-browse display")
        if display is None:
            return
        container = display.find("item-details")
        if container is None:
            return
        temporary = container.find_all("item-metadata temporary")
        if not temporary:
            return
        for metadata in temporary:
            owner = self.tile_by_id(tile_id(metadata), operation)
            if owner is not None:
                metadata.remove_class("temporary", "visible")
                owner.append(metadata.detach())
        for metadata in container.find_all("item-metadata"):
            metadata.add_class("visible")
        self.update_item_details(container)

    def step_focus(self, direction: str, count: int = 1) -> bool:
        """Move focus *count* real tiles forward or in reverse; no wrap."""
        tiles = self.tiles()
        focus = next((i for i, t in enumerate(tiles) if t.has_class(FOCUS_CLASS)), None)
        if focus is None:
            logger.debug("step_focus: no focus tile")
            return False
        step = 1 if direction == "forward" else -1
        index = focus
        target = None
        for _ in range(max(1, count)):
            index += step
            while 0 <= index < len(tiles) and focus_id(tiles[index]) < 0:
                index += step
            if not 0 <= index < len(tiles):
                break
            target = index
        if target is None:
            logger.debug("step_focus: at %s good tile", "last" if step > 0 else "first")
            return False
        self.set_focus(tiles[target])
        return True

    def focus_edge(self, location: str) -> bool:
        """Focus the first or last real tile."""
        tiles = self.tiles()
        ordered = tiles if location == "first" else list(reversed(tiles))
        target = next((t for t in ordered if focus_id(t) >= 0), None)
        if target is None:
            logger.debug("focus_edge: no good tiles")
            return False
        if target.has_class(FOCUS_CLASS):
            return False
        self.set_focus(target)
        return True

    # ------------------------------------------------------------- Internals
    def _return_metadata(self, metadata: ElementHandle, operation: str) -> None:
        metadata.remove_class("visible")
        owner = self.tile_by_id(tile_id(metadata), operation)
        if owner is not None:
            owner.append(metadata.detach())
        else:
            metadata.remove()
