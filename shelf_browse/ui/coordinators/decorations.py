"""Page decorations run after each content replacement.

Availability, cover images, copyright notes and the other decorations are
supplied by the host application as providers; this module only decides
which of them run, on which elements and when.  Each provider receives the
newly attached subtree, never the whole document.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.models import DecorationFeature
from shelf_browse.ui.host import HostWindow
from shelf_browse.ui.view import ElementHandle

logger = logging.getLogger(__name__)

__all__ = ["PageDecorations", "DecorationProvider", "resolve_skip"]

DecorationProvider = Callable[[ElementHandle], Any]

METADATA_AREAS = ("item-details", "item-tile")


def resolve_skip(names: Optional[Iterable[Any]]) -> Set[DecorationFeature]:
    """Map skip names onto features; unknown names are logged and ignored."""
    result: Set[DecorationFeature] = set()
    for name in names or ():
        feature = name if isinstance(name, DecorationFeature) else DecorationFeature.parse(name)
        if feature is None:
            logger.warning("skip: unexpected decoration %r", name)
            continue
        result.add(feature)
    return result


class PageDecorations:
    """Dispatch decoration providers for the current page.

    Parameters
    ----------
    session : ShelfBrowseSession
        ``decoration_defaults`` tells which features run when not skipped.
    host : HostWindow
        Schedules the delayed cover image retry.
    providers : Mapping[DecorationFeature, DecorationProvider], optional
    """

    def __init__(self, *, session: ShelfBrowseSession, host: HostWindow,
                 providers: Optional[Mapping[DecorationFeature, DecorationProvider]] = None) -> None:
        self._session = session
        self._host = host
        self.providers: Dict[DecorationFeature, DecorationProvider] = dict(providers or {})
        self._cover_timer: Optional[Any] = None

    def register(self, feature: DecorationFeature, provider: DecorationProvider) -> None:
        self.providers[feature] = provider

    def enabled(self, feature: DecorationFeature) -> bool:
        if feature in self._session.status.skip:
            return False
        defaults = self._session.decoration_defaults
        return bool(defaults.get(feature.value, feature is not DecorationFeature.STARRED_ITEMS))

    def enabled_features(self) -> List[DecorationFeature]:
        return [feature for feature in DecorationFeature if self.enabled(feature)]

    def run(self, display: ElementHandle, *, popup: bool) -> None:
        """Apply every enabled decoration to the freshly attached *display*."""
        areas = [area for classes in METADATA_AREAS for area in display.find_all(classes)]
        for feature in self.enabled_features():
            provider = self.providers.get(feature)
            if provider is None:
                logger.debug("no provider for %s", feature.value)
                continue
            if feature is DecorationFeature.COVERS:
                self._run_covers(provider, display, popup)
            elif feature is DecorationFeature.COPYRIGHT:
                for area in areas:
                    self._call(feature, provider, area)
            else:
                self._call(feature, provider, display)

    def details_updated(self, container: ElementHandle) -> None:
        """Refresh copyright information for the metadata now in the details pane."""
        provider = self.providers.get(DecorationFeature.COPYRIGHT)
        if provider is not None and self.enabled(DecorationFeature.COPYRIGHT):
            self._call(DecorationFeature.COPYRIGHT, provider, container)

    def cancel(self) -> None:
        if self._cover_timer is not None:
            self._host.after_cancel(self._cover_timer)
            self._cover_timer = None

    def _run_covers(self, provider: DecorationProvider, display: ElementHandle, popup: bool) -> None:
        # Pages load their own covers; the popup has to ask.
        if popup:
            self._call(DecorationFeature.COVERS, provider, display)
        self.cancel()

        def _retry() -> None:
            self._cover_timer = None
            if display.is_attached():
                self._call(DecorationFeature.COVERS, provider, display)

        self._cover_timer = self._host.after(self._session.config.cover_image_retry_ms, _retry)

    @staticmethod
    def _call(feature: DecorationFeature, provider: DecorationProvider, element: ElementHandle) -> None:
        try:
            provider(element)
        except Exception:
            logger.exception("%s decoration failed", feature.value)
