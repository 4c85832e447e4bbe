"""Library of Congress Classification tree overlay.

The tree payload is fetched once per process (see
:mod:`shelf_browse.core.lcc_cache`) and prefetched on every attach so that
opening the "Browse by topic" panel is usually instant.  Unloaded branches
are fetched on demand with a ``range`` filter.  The expanded and selected
nodes are remembered through :class:`TreeStateStore`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from shelf_browse.core.exceptions import TransportError
from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.lcc_cache import tree_id_to_range
from shelf_browse.core.lcc_tree import ClassificationTree, TreeNode
from shelf_browse.core.models import OverlayKind
from shelf_browse.core.services.tree_state_store import TreeState
from shelf_browse.core.url_utils import add_parameter
from shelf_browse.ui.coordinators.base import rebind
from shelf_browse.ui.coordinators.keyboard import key_from_event
from shelf_browse.ui.coordinators.overlay_coordinator import OverlayManager
from shelf_browse.ui.host import HostWindow
from shelf_browse.ui.view import ElementHandle, ViewDocument

logger = logging.getLogger(__name__)

__all__ = ["LccTreeCoordinator", "TREE_ELEMENT_ID"]

TREE_ELEMENT_ID = "lcc-tree"

TreeCallback = Callable[[Any], None]


class LccTreeCoordinator:
    """Prefetch, render and navigate the classification tree.

    Parameters
    ----------
    session : ShelfBrowseSession
    view : ViewDocument
    host : HostWindow
    overlays : OverlayManager
    goto_page : Callable[[ElementHandle], Any]
        Pages the shelf to a range button (``[data-path]``).
    change_topics : Callable[[str], None], optional
        Switches the help panel between ``lcc`` and ``default`` topics.
    """

    def __init__(
        self,
        *,
        session: ShelfBrowseSession,
        view: ViewDocument,
        host: HostWindow,
        overlays: OverlayManager,
        goto_page: Callable[[ElementHandle], Any],
        change_topics: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._session = session
        self._view = view
        self._host = host
        self._overlays = overlays
        self._goto_page = goto_page
        self._change_topics = change_topics
        self._control: Optional[ElementHandle] = None
        self.tree: Optional[ClassificationTree] = None

    # ------------------------------------------------------------- Tree data
    def ensure_loaded(self, callback: Optional[TreeCallback] = None) -> Optional[Any]:
        """Make the tree payload available, fetching it at most once.

        Returns the cached payload when present (after calling *callback*
        with it).  Otherwise *callback* is queued on the shared cache and
        receives the payload when the single in-flight fetch completes, even
        when another widget instance started that fetch.
        """
        cache = self._session.tree_cache
        if cache.has_data:
            data = cache.get()
            if callback is not None:
                callback(data)
            return data
        if callback is not None:
            cache.add_waiter(callback)
        if cache.downloading:
            logger.debug("classification tree already downloading")
            return None

        cache.downloading = True
        self._session.status.lcc_downloading = True
        path = self._session.config.classification_tree_path
        logger.debug("fetching classification tree %s", path)
        fetch = self._session.fetch_service
        fetch.fetch_async(
            self._host.run_in_thread,
            lambda: fetch.get_json(path),
            self._tree_received,
            self._tree_failed,
            url=path,
        )
        return None

    def _tree_received(self, data: Any) -> None:
        cache = self._session.tree_cache
        try:
            cache.set_if_absent(data)
        finally:
            self._clear_download_guard()
        cache.deliver()

    def _tree_failed(self, error: TransportError) -> None:
        try:
            logger.warning("classification tree fetch failed: %s", error)
        finally:
            self._clear_download_guard()
        dropped = self._session.tree_cache.drop_waiters()
        logger.debug("dropped %d classification tree callbacks", dropped)
        element = self.tree_element()
        if element is not None and not element.has_class("jstree"):
            element.set_text(self._session.label("lcc_failed", "Unable to load topics."))
            element.add_class("load-error")

    def _clear_download_guard(self) -> None:
        self._session.tree_cache.downloading = False
        self._session.status.lcc_downloading = False

    def load_branch(self, node_id: str) -> None:
        """Fetch the children of a node that arrived without them."""
        if self.tree is None:
            return
        node = self.tree.find(node_id)
        if node is None:
            logger.error("load_branch: no tree node %s", node_id)
            return
        path = self._session.config.classification_tree_path
        code = tree_id_to_range(node_id, self._session.config.root_node_id)
        if code:
            path = add_parameter(path, "range", code)
        logger.debug("load_branch %s -> %s", node_id, path)
        fetch = self._session.fetch_service
        fetch.fetch_async(
            self._host.run_in_thread,
            lambda: fetch.get_json(path),
            lambda data: self._branch_received(node, data),
            lambda error: logger.warning("classification branch %s failed: %s", node_id, error),
            url=path,
        )

    def _branch_received(self, node: TreeNode, data: Any) -> None:
        if self.tree is None:
            return
        self.tree.set_children(node, data)
        self.tree.open_node(node)
        self.refresh()
        self.save_state()

    # ------------------------------------------------------------- Overlay
    def container(self) -> Optional[ElementHandle]:
        display = self._view.find("shelf-browse display")
        return display.find("lcc-tree-display") if display is not None else None

    def tree_element(self) -> Optional[ElementHandle]:
        container = self.container()
        return container.find_by_id(TREE_ELEMENT_ID) if container is not None else None

    def show(self, control: Optional[ElementHandle], container: Optional[ElementHandle] = None) -> None:
        container = container or self.container()
        if container is None:
            logger.error("show_lcc_tree: missing .lcc-tree-display")
            return
        self._control = control
        self._overlays.open(OverlayKind.CLASSIFICATION_TREE, control, container, self.hide)
        if control is not None:
            control.set_text(self._session.label("lcc_close", "Close topics"))

        carrier = container.find("lcc-tree", child=True) or container
        element = carrier.find_by_id(TREE_ELEMENT_ID)
        # Anything but a rendered tree is a placeholder left by an earlier open.
        tree_missing = element is None or not element.has_class("jstree")
        if tree_missing:
            loading = self._session.label("lcc_loading", "Loading...")
            if element is None:
                carrier.prepend(carrier.create("div", "", loading, id=TREE_ELEMENT_ID))
            else:
                element.set_text(loading)
                element.remove_class("load-error")
        if self._change_topics is not None:
            self._change_topics("lcc")
        if tree_missing:
            self.ensure_loaded(self.render)

    def hide(self, control: Optional[ElementHandle] = None, container: Optional[ElementHandle] = None) -> None:
        control = control or self._control
        if control is not None:
            control.set_text(self._session.label("lcc_open", "Browse by topic"))
        if self._change_topics is not None:
            self._change_topics("default")
        self._control = None
        self._overlays.close(OverlayKind.CLASSIFICATION_TREE, control, container or self.container())

    def toggle(self, control: Optional[ElementHandle]) -> None:
        if self._overlays.is_close_affordance(control):
            self.hide(control)
        else:
            self.show(control)

    # ----------------------------------------------------------- Rendering
    def render(self, data: Any) -> None:
        """Build the tree model from *data* and draw it into ``#lcc-tree``."""
        if data is None:
            return
        if self.tree is None:
            self.tree = ClassificationTree(data, self._session.config.root_node_id)
            self.restore_state()
        self.refresh()

    def refresh(self) -> None:
        element = self.tree_element()
        if element is None or self.tree is None:
            return
        element.empty()
        element.add_class("jstree")
        element.append(self._render_nodes(element, self.tree.roots))
        rebind(element, "keydown", self.handle_key)

    def _render_nodes(self, element: ElementHandle, nodes: List[TreeNode]) -> ElementHandle:
        ul = element.create("ul")
        for node in nodes:
            if node.is_leaf:
                state = "jstree-leaf"
            else:
                state = "jstree-open" if node.is_open else "jstree-closed"
            li = ul.append(element.create("li", f"{state} {node.css_class}".strip(), id=node.node_id))
            icon = li.append(element.create("ins", "jstree-icon", " "))
            link = li.append(element.create("a", "", tabindex="-1"))
            link.set_html(node.title)
            if node is self.tree.hovered:
                link.add_class("jstree-hovered")
            if node is self.tree.selected:
                link.add_class("jstree-clicked")

            if node.node_id == self._session.config.root_node_id:
                icon.set("title", self._session.label("lcc_root_icon_tooltip"))
            icon.bind("click", lambda event, n=node: self._icon_clicked(event, n))
            link.bind("click", lambda event, n=node: self._link_clicked(event, n))
            link.bind("mouseenter", lambda event, n=node: self.hover(n))

            if node.is_open and node.children:
                li.append(self._render_nodes(element, node.children))
        return ul

    def node_link(self, node: TreeNode) -> Optional[ElementHandle]:
        element = self.tree_element()
        item = element.find_by_id(node.node_id) if element is not None else None
        return item.find(tag="a", child=True) if item is not None else None

    # --------------------------------------------------------------- Events
    def _icon_clicked(self, event, node: TreeNode) -> None:
        event.prevent_default()
        event.stop_propagation()
        if self.tree is None:
            return
        if node.node_id == self._session.config.root_node_id:
            logger.debug("tree root icon: closing all branches")
            self.tree.reset_root()
        elif not node.loaded:
            self.load_branch(node.node_id)
            return
        else:
            self.tree.toggle_node(node)
        self.refresh()
        self.save_state()

    def _link_clicked(self, event, node: TreeNode) -> None:
        if self.tree is not None:
            self.tree.selected = node
        button = event.target if event.target is not None and event.target.get("data-path") else None
        if button is None:
            logger.debug("tree item clicked outside range button")
            return
        event.prevent_default()
        self.save_state()
        self._goto_page(button)

    def hover(self, node: Optional[TreeNode]) -> None:
        """Move the hover cursor to *node* and give its range button focus."""
        if self.tree is None or node is None:
            return
        element = self.tree_element()
        if element is None:
            return
        for link in element.find_all("jstree-hovered"):
            link.remove_class("jstree-hovered")
        self.tree.hovered = node
        link = self.node_link(node)
        if link is None:
            return
        link.add_class("jstree-hovered")
        (link.find(attrs={"data-path": None}) or link).focus()

    def move(self, step: int) -> Optional[TreeNode]:
        if self.tree is None:
            return None
        node = self.tree.move(step)
        self.hover(node)
        return node

    def handle_key(self, event: Any) -> bool:
        """Up/Down move the hover cursor, Escape closes, Return pages to a range."""
        key, _shift = key_from_event(event)
        if key in ("Up", "ArrowUp"):
            self.move(-1)
        elif key in ("Down", "ArrowDown"):
            self.move(1)
        elif key == "Escape":
            self.hide()
        elif key in ("Return", "Enter"):
            if not self._activate_current():
                return False
        else:
            return False
        for name in ("prevent_default", "stop_propagation"):
            method = getattr(event, name, None)
            if callable(method):
                method()
        return True

    def _activate_current(self) -> bool:
        focused = self._view.focused
        if focused is None or not focused.get("data-path"):
            node = self.tree.hovered if self.tree is not None else None
            link = self.node_link(node) if node is not None else None
            focused = link.find(attrs={"data-path": None}) if link is not None else None
        if focused is None:
            return False
        if self.tree is not None and self.tree.hovered is not None:
            self.tree.selected = self.tree.hovered
            self.save_state()
        self._goto_page(focused)
        return True

    # ---------------------------------------------------------------- State
    def save_state(self) -> None:
        store = self._session.tree_state
        if store is None or self.tree is None:
            return
        selected = self.tree.selected.node_id if self.tree.selected is not None else None
        store.save(TreeState(loaded=self.tree.loaded_ids(), opened=self.tree.opened_ids(), selected=selected))

    def restore_state(self) -> None:
        store = self._session.tree_state
        if store is None or self.tree is None:
            return
        state = store.load()
        self.tree.restore(state.opened, state.selected)
        for node_id in state.loaded:
            node = self.tree.find(node_id)
            if node is not None and not node.loaded:
                self.load_branch(node_id)
