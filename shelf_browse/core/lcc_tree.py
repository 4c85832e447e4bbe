"""In-memory model of the Library of Congress Classification tree.

The server delivers nested JSON nodes of the form::

    {"data": {"title": "<div class=\"range\">...</div>"},
     "attr": {"id": "CLASS_Q", "class": "..."},
     "state": "closed",
     "children": [...]}

Nodes without a ``children`` list are branches that have not been fetched
yet (see ``load_branch`` in the tree coordinator).  The model keeps the
open/closed state, the hover cursor used for keyboard motion and the
selected node; rendering to the view is done by the coordinator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

__all__ = ["TreeNode", "ClassificationTree", "parse_nodes"]


@dataclass
class TreeNode:
    node_id: str
    title: str = ""
    css_class: str = ""
    children: Optional[List["TreeNode"]] = None
    is_open: bool = False
    parent: Optional["TreeNode"] = field(default=None, repr=False, compare=False)

    @property
    def loaded(self) -> bool:
        return self.children is not None

    @property
    def is_leaf(self) -> bool:
        return self.children is not None and not self.children

    def iter_subtree(self) -> Iterator["TreeNode"]:
        yield self
        for child in self.children or ():
            yield from child.iter_subtree()

    def to_json(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {
            "data": {"title": self.title},
            "attr": {"id": self.node_id},
        }
        if self.css_class:
            node["attr"]["class"] = self.css_class
        if self.children is None:
            node["state"] = "closed"
        else:
            node["state"] = "open" if self.is_open else "closed"
            node["children"] = [c.to_json() for c in self.children]
        return node


def _title_of(data: Any) -> str:
    if isinstance(data, dict):
        return str(data.get("title") or "")
    return "" if data is None else str(data)


def _parse_node(raw: Dict[str, Any], parent: Optional[TreeNode]) -> TreeNode:
    attr = raw.get("attr") or {}
    node = TreeNode(
        node_id=str(attr.get("id") or ""),
        title=_title_of(raw.get("data")),
        css_class=str(attr.get("class") or ""),
        is_open=raw.get("state") == "open",
        parent=parent,
    )
    children = raw.get("children")
    if isinstance(children, list):
        node.children = [_parse_node(c, node) for c in children if isinstance(c, dict)]
    return node


def parse_nodes(data: Any, parent: Optional[TreeNode] = None) -> List[TreeNode]:
    """Parse a JSON payload (one node or a list of nodes)."""
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []
    return [_parse_node(raw, parent) for raw in data if isinstance(raw, dict)]


class ClassificationTree:
    """Navigable tree built from the classification payload.

    Parameters
    ----------
    data : Any
        JSON payload as fetched from the tree endpoint.
    root_id : str
        Identifier of the root node, initially opened.
    """

    def __init__(self, data: Any, root_id: str = "ROOT") -> None:
        self.root_id = root_id
        self.roots: List[TreeNode] = parse_nodes(data)
        self.hovered: Optional[TreeNode] = None
        self.selected: Optional[TreeNode] = None
        root = self.find(root_id)
        if root is not None:
            root.is_open = True

    # ---------------------------------------------------------------- lookup
    def iter_nodes(self) -> Iterator[TreeNode]:
        for root in self.roots:
            yield from root.iter_subtree()

    def find(self, node_id: str) -> Optional[TreeNode]:
        for node in self.iter_nodes():
            if node.node_id == node_id:
                return node
        return None

    @property
    def root(self) -> Optional[TreeNode]:
        return self.find(self.root_id)

    def visible_nodes(self) -> List[TreeNode]:
        """Nodes reachable without opening anything, in document order."""
        result: List[TreeNode] = []

        def _walk(nodes: Iterable[TreeNode]) -> None:
            for node in nodes:
                result.append(node)
                if node.is_open and node.children:
                    _walk(node.children)

        _walk(self.roots)
        return result

    # ---------------------------------------------------------------- motion
    def next_visible(self, node: Optional[TreeNode]) -> Optional[TreeNode]:
        visible = self.visible_nodes()
        if not visible:
            return None
        if node is None or node not in visible:
            return visible[0]
        index = visible.index(node)
        return visible[index + 1] if index + 1 < len(visible) else None

    def prev_visible(self, node: Optional[TreeNode]) -> Optional[TreeNode]:
        visible = self.visible_nodes()
        if not visible:
            return None
        if node is None or node not in visible:
            return visible[-1]
        index = visible.index(node)
        return visible[index - 1] if index > 0 else None

    def move(self, step: int) -> Optional[TreeNode]:
        """Move the hover cursor one visible node up (-1) or down (+1)."""
        current = self.hovered or self.selected
        target = self.next_visible(current) if step > 0 else self.prev_visible(current)
        if target is not None:
            self.hovered = target
        return target

    # ------------------------------------------------------------ open/close
    def open_node(self, node: TreeNode) -> None:
        node.is_open = True

    def close_node(self, node: TreeNode) -> None:
        node.is_open = False
        if self.hovered is not None and self._is_descendant(self.hovered, node):
            self.hovered = node

    def toggle_node(self, node: TreeNode) -> bool:
        if node.is_open:
            self.close_node(node)
        else:
            self.open_node(node)
        return node.is_open

    def close_all(self, node: Optional[TreeNode] = None) -> None:
        """Recursively close *node* (every root when omitted)."""
        targets = [node] if node is not None else self.roots
        for top in targets:
            for each in top.iter_subtree():
                each.is_open = False
        if self.hovered is not None and node is not None and self._is_descendant(self.hovered, node):
            self.hovered = node

    def reset_root(self) -> None:
        """Close all branches but keep the root itself open."""
        root = self.root
        if root is None:
            return
        self.close_all(root)
        self.open_node(root)

    def set_children(self, node: TreeNode, data: Any) -> List[TreeNode]:
        """Attach a fetched branch payload below *node*."""
        if isinstance(data, dict) and "children" in data and (data.get("attr") or {}).get("id") == node.node_id:
            data = data.get("children")
        node.children = parse_nodes(data, node)
        return node.children

    @staticmethod
    def _is_descendant(candidate: TreeNode, ancestor: TreeNode) -> bool:
        current = candidate.parent
        while current is not None:
            if current is ancestor:
                return True
            current = current.parent
        return False

    # ----------------------------------------------------------------- state
    def opened_ids(self) -> List[str]:
        return [n.node_id for n in self.iter_nodes() if n.is_open]

    def loaded_ids(self) -> List[str]:
        return [n.node_id for n in self.iter_nodes() if n.loaded and n.children]

    def restore(self, opened: Iterable[str] = (), selected: Optional[str] = None) -> None:
        """Re-apply persisted open and selected node identifiers."""
        wanted = set(opened)
        for node in self.iter_nodes():
            if node.node_id in wanted and node.loaded:
                node.is_open = True
        if selected:
            self.selected = self.find(selected)

    def to_json(self) -> List[Dict[str, Any]]:
        return [root.to_json() for root in self.roots]
