"""Runtime state of one shelf browse activation.

``FeatureStatus`` is the single source of truth for "is the widget usable
right now".  Its boolean fields double as advisory locks: each is set before
an asynchronous operation starts and cleared when that operation completes,
on success and failure alike.

``ShelfBrowseSession`` bundles the status with the configuration, the
process-wide classification tree cache and the services, and is handed to
every coordinator instead of being reached as ambient global state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional, Set, Union

from shelf_browse.core.geometry import GeometrySettings
from shelf_browse.core.lcc_cache import ClassificationTreeCache, get_classification_tree_cache
from shelf_browse.core.models import Configuration, DecorationFeature, OverlayKind

if TYPE_CHECKING:
    from shelf_browse.core.services.fetch_service import FetchService
    from shelf_browse.core.services.tree_state_store import TreeStateStore

logger = logging.getLogger(__name__)

__all__ = ["FeatureStatus", "ShelfBrowseSession"]

OverlayId = Union[OverlayKind, str]


def _overlay_name(overlay: OverlayId) -> str:
    return overlay.value if isinstance(overlay, OverlayKind) else str(overlay)


@dataclass
class FeatureStatus:
    """Mutable record of runtime state, one instance per widget activation."""

    active: bool = False
    loading: bool = False
    popup: Optional[bool] = None
    skip: Set[DecorationFeature] = field(default_factory=set)
    base_url: Optional[str] = None
    full_url: Optional[str] = None
    browser_resizing: bool = False
    resize_pending: bool = False
    splitter_dragging: bool = False
    open_overlays: List[str] = field(default_factory=list)
    details_scroll: Optional[str] = None
    item_ranges_width: Optional[str] = None
    item_ranges_width_init: Optional[str] = None
    page_scroller_height: Optional[str] = None
    page_scroller_height_init: Optional[str] = None
    page_scroller_height_min: float = 0.0
    key_handler: Optional[Callable] = None
    resize_handler: Optional[Callable] = None
    lcc_downloading: bool = False
    load_failed: bool = False
    request_seq: int = 0

    # ------------------------------------------------------------------ flags
    @property
    def key_handler_installed(self) -> bool:
        return self.key_handler is not None

    @property
    def resize_handler_installed(self) -> bool:
        return self.resize_handler is not None

    @property
    def any_overlay_open(self) -> bool:
        return bool(self.open_overlays)

    @property
    def input_blocked(self) -> bool:
        """True when keyboard navigation must be ignored."""
        return (not self.active) or self.loading or self.browser_resizing or self.any_overlay_open

    # --------------------------------------------------------------- overlays
    def add_overlay(self, overlay: OverlayId) -> None:
        name = _overlay_name(overlay)
        if name not in self.open_overlays:
            self.open_overlays.append(name)

    def remove_overlay(self, overlay: OverlayId) -> None:
        name = _overlay_name(overlay)
        if name in self.open_overlays:
            self.open_overlays.remove(name)

    def overlay_open(self, overlay: OverlayId) -> bool:
        return _overlay_name(overlay) in self.open_overlays

    def clear_overlays(self) -> None:
        self.open_overlays.clear()

    def defer_resize(self) -> bool:
        """Record a resize for replay when the last overlay closes.

        Returns False (and records nothing) when no overlay is open.
        """
        if not self.open_overlays:
            return False
        self.resize_pending = True
        return True

    def take_pending_resize(self) -> bool:
        """Consume a deferred resize once no overlay remains open."""
        if self.resize_pending and not self.open_overlays:
            self.resize_pending = False
            return True
        return False

    def snapshot(self) -> dict:
        """Plain-value view used for diagnostics."""
        return {
            "active": self.active,
            "loading": self.loading,
            "popup": self.popup,
            "skip": sorted(f.value for f in self.skip),
            "base_url": self.base_url,
            "full_url": self.full_url,
            "browser_resizing": self.browser_resizing,
            "resize_pending": self.resize_pending,
            "splitter_dragging": self.splitter_dragging,
            "open_overlays": list(self.open_overlays),
            "details_scroll": self.details_scroll,
            "item_ranges_width": self.item_ranges_width,
            "item_ranges_width_init": self.item_ranges_width_init,
            "page_scroller_height": self.page_scroller_height,
            "page_scroller_height_init": self.page_scroller_height_init,
            "page_scroller_height_min": self.page_scroller_height_min,
            "key_handler_installed": self.key_handler_installed,
            "resize_handler_installed": self.resize_handler_installed,
            "lcc_downloading": self.lcc_downloading,
            "load_failed": self.load_failed,
        }


class ShelfBrowseSession:
    """Explicitly owned state shared by the coordinators of one widget.

    Parameters
    ----------
    config : Configuration
        Active configuration (already merged and validated).
    fetch_service : FetchService
        Transport for content, tree and dialog requests.
    tree_cache : ClassificationTreeCache, optional
        Defaults to the process-wide cache so the payload survives activations.
    tree_state : TreeStateStore, optional
        Persisted tree UI state.
    geometry : GeometrySettings, optional
    labels : dict, optional
        UI strings from the packaged configuration.
    """

    def __init__(
        self,
        config: Configuration,
        fetch_service: "FetchService",
        *,
        tree_cache: Optional[ClassificationTreeCache] = None,
        tree_state: Optional["TreeStateStore"] = None,
        geometry: Optional[GeometrySettings] = None,
        labels: Optional[dict] = None,
        decoration_defaults: Optional[dict] = None,
    ) -> None:
        self.config = config
        self.status = FeatureStatus()
        self.fetch_service = fetch_service
        self.tree_cache = tree_cache if tree_cache is not None else get_classification_tree_cache()
        self.tree_state = tree_state
        self.geometry = geometry or GeometrySettings()
        self.labels = dict(labels or {})
        self.decoration_defaults = dict(decoration_defaults or {})

    def label(self, key: str, default: str = "") -> str:
        return self.labels.get(key) or default

    def reset_status(self) -> FeatureStatus:
        """Start a fresh activation; the tree cache is kept."""
        self.status = FeatureStatus()
        return self.status
