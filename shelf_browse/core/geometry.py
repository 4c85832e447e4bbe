"""Viewport geometry for the shelf display.

Computes how many item tiles the current window can hold and the size the
modal overlay should take in popup mode.  All distances are pixels.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

__all__ = ["GeometrySettings", "Viewport", "ShelfGeometry", "compute_geometry", "item_info_height"]


@dataclass(frozen=True)
class GeometrySettings:
    modal_border_width: float = 30
    modal_border_height: float = 30
    item_width: float = 107.2
    item_margin_width: float = 6
    item_height: float = 194.2
    item_margin_height: float = 0.4
    page_control_width: float = 32
    page_control_margin_width: float = 13
    page_control_height: float = 32
    page_control_margin_height: float = 13
    small_screen_height: float = 640
    default_popup_width: str = "99%"
    default_popup_height: str = "99%"
    default_item_ranges_width: str = "48.4%"
    default_page_scroller_height: str = "48.4%"
    scale_small: float = 500
    scale_large: float = 1000
    scale_factor_small: float = 0.4
    scale_factor_medium: float = 0.5
    scale_factor_large: float = 0.6

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "GeometrySettings":
        values = dict(values or {})
        scale = values.pop("scale", None) or {}
        factor = values.pop("scale_factor", None) or {}
        known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__}
        if "small" in scale:
            known["scale_small"] = scale["small"]
        if "large" in scale:
            known["scale_large"] = scale["large"]
        for size in ("small", "medium", "large"):
            if size in factor:
                known[f"scale_factor_{size}"] = factor[size]
        return cls(**known)


@dataclass(frozen=True)
class Viewport:
    """Host window measurements at the time of the request."""

    width: float
    height: float
    screen_height: float = 1080
    scroll_width: float = 0
    scroll_height: float = 0
    # False where scrollbars overlay content instead of reserving space.
    scrollbars_reserve_space: bool = True


@dataclass(frozen=True)
class ShelfGeometry:
    item_width: float
    item_height: float
    reserved_width: float
    reserved_height: float
    item_page_width: float
    item_page_height: float
    items_across: int
    items_down: int
    popup_width: str
    popup_height: str


def _px(value: float) -> str:
    return f"{value:g}px"


def compute_geometry(settings: GeometrySettings, viewport: Viewport, *,
                     popup: bool, horizontal: bool) -> ShelfGeometry:
    border_width = 2 * settings.modal_border_width
    border_height = 2 * settings.modal_border_height

    item_width = settings.item_width + 2 * settings.item_margin_width
    item_height = settings.item_height + 2 * settings.item_margin_height
    controls_width = 2 * (settings.page_control_width + 2 * settings.page_control_margin_width)
    controls_height = item_height

    # Small form-factor displays get half-size tiles.
    if viewport.screen_height <= settings.small_screen_height:
        item_width /= 2
        item_height /= 2
        controls_width /= 2
        controls_height /= 2

    reserved_width = 0.0
    reserved_height = 0.0
    if popup:
        reserved_width += border_width
        reserved_height += border_height
    if horizontal:
        reserved_width += controls_width
    else:
        reserved_height += controls_height

    item_page_width = viewport.width - reserved_width
    item_page_height = viewport.height - reserved_height
    if viewport.scrollbars_reserve_space:
        item_page_width -= viewport.scroll_width
        item_page_height -= viewport.scroll_height

    items_across = 1
    items_down = 1
    popup_width = settings.default_popup_width
    popup_height = settings.default_popup_height
    if horizontal:
        items_across = max(0, int(math.floor(item_page_width / item_width)))
        popup_width = _px(item_width * items_across + reserved_width)
    else:
        items_down = max(0, int(math.floor(item_page_height / item_height)))
        popup_height = _px(item_height * items_down + reserved_height)

    return ShelfGeometry(
        item_width=item_width,
        item_height=item_height,
        reserved_width=reserved_width,
        reserved_height=reserved_height,
        item_page_width=item_page_width,
        item_page_height=item_page_height,
        items_across=items_across,
        items_down=items_down,
        popup_width=popup_width,
        popup_height=popup_height,
    )


def item_info_height(settings: GeometrySettings, browser_height: float) -> float:
    """Height of the item-info area, which drives the overall display height."""
    if browser_height < settings.scale_small:
        return browser_height * settings.scale_factor_small
    if browser_height > settings.scale_large:
        return browser_height * settings.scale_factor_large
    return browser_height * settings.scale_factor_medium
