"""Assembly of a shelf browse widget from the packaged configuration.

Front-ends call :func:`create_controller` with their host window and the
view document holding the fetched page; everything else (configuration
layers, transport, tree cache and persisted tree state) is wired here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import requests

from shelf_browse.config import ConfigManager
from shelf_browse.core.config_resolver import ConfigResolver
from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.lcc_cache import ClassificationTreeCache
from shelf_browse.core.models import DecorationFeature
from shelf_browse.core.services import FetchService, TreeStateStore
from shelf_browse.ui.controllers import ShelfBrowseController
from shelf_browse.ui.coordinators.decorations import DecorationProvider
from shelf_browse.ui.host import HostWindow
from shelf_browse.ui.view import ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["build_session", "create_controller"]

TREE_STATE_FILENAME = "tree_state.json"


def build_session(
    resolver: ConfigResolver,
    *,
    base_url: Optional[str] = None,
    http_session: Optional[requests.Session] = None,
    tree_cache: Optional[ClassificationTreeCache] = None,
    tree_state_path: Optional[Path] = None,
) -> ShelfBrowseSession:
    """Create the session of one widget activation."""
    manager = ConfigManager()
    fetch_service = FetchService.from_config(base_url, manager.get_transport(), session=http_session)
    state_path = tree_state_path or manager.user_config_dir / TREE_STATE_FILENAME
    return ShelfBrowseSession(
        resolver.config,
        fetch_service,
        tree_cache=tree_cache,
        tree_state=TreeStateStore.from_config(state_path, manager.get_tree_state()),
        geometry=resolver.geometry,
        labels=manager.get_labels(),
        decoration_defaults=manager.get_decoration_defaults(),
    )


def create_controller(
    host: HostWindow,
    view: ViewDocument,
    *,
    base_url: Optional[str] = None,
    server: Optional[Mapping[str, Any]] = None,
    providers: Optional[Mapping[DecorationFeature, DecorationProvider]] = None,
    http_session: Optional[requests.Session] = None,
    tree_state_path: Optional[Path] = None,
) -> ShelfBrowseController:
    """Build a controller for the page currently shown by *host*.

    Parameters
    ----------
    host : HostWindow
    view : ViewDocument
    base_url : str, optional
        Origin used to resolve the relative paths found in the markup.
    server : Mapping, optional
        Configuration values supplied by the server with the page.
    providers : Mapping[DecorationFeature, DecorationProvider], optional
    http_session : requests.Session, optional
    tree_state_path : Path, optional
        Defaults to ``tree_state.json`` in the user configuration directory.
    """
    resolver = ConfigResolver.from_config_manager(server=server, url=host.current_url())
    session = build_session(resolver, base_url=base_url, http_session=http_session,
                            tree_state_path=tree_state_path)
    logger.debug("Shelf browse session created for %s", host.current_url())
    return ShelfBrowseController(session=session, view=view, host=host, resolver=resolver,
                                 decoration_providers=providers)
