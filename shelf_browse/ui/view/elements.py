"""Element handles over the ``lxml.html`` view document.

The widget's markup (as delivered by the server) is held in an lxml tree.
Coordinators never touch lxml directly; they work through
:class:`ElementHandle`, which offers class, attribute, inline-style and
scroll-position helpers, and through :class:`ViewDocument`, which owns the
tree, the focus and the event handler registry.

Scroll metrics have no meaning in a detached tree, so they are kept in
``data-scroll-top`` / ``data-scroll-height`` / ``data-client-height``
attributes that the host keeps in sync with the rendered widget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from lxml import etree
from lxml import html as lxml_html

from shelf_browse.core.exceptions import MissingElementError

logger = logging.getLogger(__name__)

__all__ = ["ElementHandle", "ViewDocument", "ViewEvent", "class_predicate", "css_number", "extract_root", "Handler"]

Handler = Callable[["ViewEvent"], Any]

_CLASS_TEST = "contains(concat(' ', normalize-space(@class), ' '), ' {0} ')"


def class_predicate(classes: Union[str, Iterable[str], None]) -> str:
    """XPath predicate body matching every class in *classes* (space separated)."""
    if not classes:
        return "true()"
    names = classes.split() if isinstance(classes, str) else list(classes)
    return " and ".join(_CLASS_TEST.format(name) for name in names)


def _attr_predicate(attrs: Optional[Mapping[str, Any]]) -> str:
    parts = []
    for name, value in (attrs or {}).items():
        if value is None or value is True:
            parts.append(f"@{name}")
        else:
            text = str(value).replace("'", "")
            parts.append(f"@{name}='{text}'")
    return " and ".join(parts)


def _xpath(axis: str, classes: Union[str, Iterable[str], None], tag: str,
           attrs: Optional[Mapping[str, Any]]) -> str:
    predicates = [p for p in (class_predicate(classes) if classes else "", _attr_predicate(attrs)) if p]
    expr = f"{axis}{tag}"
    for predicate in predicates:
        expr += f"[{predicate}]"
    return expr


def _parse_style(style: Optional[str]) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for declaration in (style or "").split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            result[name.strip().lower()] = value.strip()
    return result


def _render_style(values: Mapping[str, str]) -> str:
    return "; ".join(f"{k}: {v}" for k, v in values.items())


def _parse_fragment(markup: Optional[str]) -> etree._Element:
    """Parse *markup* below a new ``div``; blank markup gives an empty ``div``."""
    if not markup or not markup.strip():
        return lxml_html.Element("div")
    return lxml_html.fragment_fromstring(markup, create_parent="div")


def css_number(value: Optional[str]) -> Optional[float]:
    """Numeric part of a CSS length (``"12.5px"`` -> 12.5)."""
    if value is None:
        return None
    text = str(value).strip()
    for suffix in ("px", "%", "em"):
        if text.endswith(suffix):
            text = text[: -len(suffix)]
            break
    try:
        return float(text)
    except ValueError:
        return None


@dataclass
class ViewEvent:
    """Event delivered to handlers registered with :meth:`ElementHandle.bind`."""

    type: str
    target: Optional["ElementHandle"] = None
    key: Optional[str] = None
    shift: bool = False
    data: Dict[str, Any] = field(default_factory=dict)
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class ElementHandle:
    """Thin wrapper around one lxml element belonging to a :class:`ViewDocument`."""

    __slots__ = ("_el", "_doc")

    def __init__(self, element: etree._Element, document: "ViewDocument") -> None:
        self._el = element
        self._doc = document

    # ------------------------------------------------------------ identity
    @property
    def element(self) -> etree._Element:
        return self._el

    @property
    def document(self) -> "ViewDocument":
        return self._doc

    @property
    def tag(self) -> str:
        return self._el.tag

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ElementHandle) and other._el is self._el

    def __hash__(self) -> int:
        return hash(self._el)

    def __repr__(self) -> str:
        return f"<ElementHandle {self._el.tag} class={self._el.get('class')!r}>"

    # ---------------------------------------------------------- attributes
    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._el.get(name, default)

    def set(self, name: str, value: Any) -> "ElementHandle":
        if value is None:
            self.remove_attr(name)
        else:
            self._el.set(name, str(value))
        return self

    def remove_attr(self, name: str) -> None:
        if name in self._el.attrib:
            del self._el.attrib[name]

    @property
    def id(self) -> Optional[str]:
        return self._el.get("id")

    # -------------------------------------------------------------- classes
    @property
    def classes(self) -> List[str]:
        return (self._el.get("class") or "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, *names: str) -> "ElementHandle":
        current = self.classes
        for name in names:
            if name not in current:
                current.append(name)
        self._el.set("class", " ".join(current))
        return self

    def remove_class(self, *names: str) -> "ElementHandle":
        current = [c for c in self.classes if c not in names]
        if current:
            self._el.set("class", " ".join(current))
        else:
            self.remove_attr("class")
        return self

    def toggle_class(self, name: str, on: Optional[bool] = None) -> "ElementHandle":
        if on is None:
            on = not self.has_class(name)
        return self.add_class(name) if on else self.remove_class(name)

    # ----------------------------------------------------------------- style
    def css(self, name: str) -> Optional[str]:
        return _parse_style(self._el.get("style")).get(name.lower())

    def set_css(self, name: str, value: Optional[Any]) -> "ElementHandle":
        values = _parse_style(self._el.get("style"))
        if value is None or value == "":
            values.pop(name.lower(), None)
        else:
            values[name.lower()] = str(value)
        if values:
            self._el.set("style", _render_style(values))
        else:
            self.remove_attr("style")
        return self

    def show(self) -> "ElementHandle":
        return self.set_css("display", "block")

    def hide(self) -> "ElementHandle":
        return self.set_css("display", "none")

    @property
    def displayed(self) -> bool:
        return self.css("display") != "none"

    # ---------------------------------------------------------------- scroll
    def _metric(self, name: str) -> float:
        return css_number(self._el.get(name)) or 0.0

    @property
    def scroll_top(self) -> float:
        return self._metric("data-scroll-top")

    @scroll_top.setter
    def scroll_top(self, value: float) -> None:
        self._el.set("data-scroll-top", f"{max(0.0, float(value)):g}")

    @property
    def scroll_height(self) -> float:
        return self._metric("data-scroll-height")

    @property
    def client_height(self) -> float:
        return self._metric("data-client-height")

    @property
    def max_scroll(self) -> float:
        return max(0.0, self.scroll_height - self.client_height)

    # ------------------------------------------------------------------ text
    @property
    def text(self) -> str:
        return self._el.text_content()

    def set_text(self, text: str) -> "ElementHandle":
        for child in list(self._el):
            self._doc.forget_subtree(child)
            self._el.remove(child)
        self._el.text = text
        return self

    def inner_html(self) -> str:
        parts = [self._el.text or ""]
        parts.extend(etree.tostring(child, encoding="unicode", method="html") for child in self._el)
        return "".join(parts)

    def outer_html(self) -> str:
        return etree.tostring(self._el, encoding="unicode", method="html", with_tail=False)

    def set_html(self, markup: str) -> "ElementHandle":
        """Replace the children of this element with parsed *markup*."""
        fragment = _parse_fragment(markup)
        self.replace_children_from(self._doc.wrap(fragment))
        return self

    # ------------------------------------------------------------- traversal
    def find_all(self, classes: Union[str, Iterable[str], None] = None, *, tag: str = "*",
                 attrs: Optional[Mapping[str, Any]] = None, child: bool = False) -> List["ElementHandle"]:
        expr = _xpath("./" if child else ".//", classes, tag, attrs)
        return [self._doc.wrap(el) for el in self._el.xpath(expr)]

    def find(self, classes: Union[str, Iterable[str], None] = None, *, tag: str = "*",
             attrs: Optional[Mapping[str, Any]] = None, child: bool = False) -> Optional["ElementHandle"]:
        found = self.find_all(classes, tag=tag, attrs=attrs, child=child)
        return found[0] if found else None

    def find_by_id(self, element_id: str) -> Optional["ElementHandle"]:
        found = self._el.xpath(".//*[@id=$id]", id=element_id)
        return self._doc.wrap(found[0]) if found else None

    def single(self, classes: str, *, label: Optional[str] = None, operation: Optional[str] = None,
               required: bool = False, tag: str = "*",
               attrs: Optional[Mapping[str, Any]] = None) -> Optional["ElementHandle"]:
        """Return the one matching descendant, logging when there is not exactly one.

        With *required*, a missing element raises :class:`MissingElementError`.
        """
        found = self.find_all(classes, tag=tag, attrs=attrs)
        item = label or classes
        if not found:
            if required:
                raise MissingElementError(item, operation)
            logger.error("%s: missing %s", operation or "single", item)
            return None
        if len(found) > 1:
            logger.error("%s: %d %s elements", operation or "single", len(found), item)
        return found[0]

    def xpath(self, expr: str, **variables: Any) -> List["ElementHandle"]:
        return [self._doc.wrap(el) for el in self._el.xpath(expr, **variables) if isinstance(el, etree._Element)]

    def children(self, classes: Union[str, Iterable[str], None] = None) -> List["ElementHandle"]:
        return self.find_all(classes, child=True)

    def parent(self) -> Optional["ElementHandle"]:
        parent = self._el.getparent()
        return self._doc.wrap(parent) if parent is not None else None

    def closest(self, classes: str, tag: str = "*") -> Optional["ElementHandle"]:
        found = self._el.xpath(_xpath("ancestor-or-self::", classes, tag, None))
        return self._doc.wrap(found[-1]) if found else None

    def contains(self, other: "ElementHandle") -> bool:
        current = other._el
        while current is not None:
            if current is self._el:
                return True
            current = current.getparent()
        return False

    def is_attached(self) -> bool:
        return self._doc.root.contains(self)

    # -------------------------------------------------------------- mutation
    def create(self, tag: str, classes: str = "", text: Optional[str] = None,
               **attrs: Any) -> "ElementHandle":
        """Create a detached element in this element's document."""
        return self._doc.create(tag, classes, text, **attrs)

    def append(self, other: "ElementHandle") -> "ElementHandle":
        self._el.append(other._el)
        return other

    def prepend(self, other: "ElementHandle") -> "ElementHandle":
        self._el.insert(0, other._el)
        return other

    def detach(self) -> "ElementHandle":
        """Remove from the tree keeping handlers, so the element can be moved."""
        parent = self._el.getparent()
        if parent is not None:
            tail = self._el.tail
            self._el.tail = None
            previous = self._el.getprevious()
            parent.remove(self._el)
            if tail:
                if previous is not None:
                    previous.tail = (previous.tail or "") + tail
                else:
                    parent.text = (parent.text or "") + tail
        return self

    def remove(self) -> None:
        """Remove from the tree and drop every handler bound inside it."""
        self._doc.forget_subtree(self._el)
        self.detach()

    def empty(self) -> "ElementHandle":
        return self.set_text("")

    def replace_children_from(self, source: "ElementHandle") -> "ElementHandle":
        """Replace this element's content with the content of *source*."""
        self.empty()
        self._el.text = source._el.text
        for child in list(source._el):
            self._el.append(child)
        return self

    # ---------------------------------------------------------------- events
    def bind(self, event: str, handler: Handler) -> "ElementHandle":
        self._doc.bind(self._el, event, handler)
        return self

    def unbind(self, event: Optional[str] = None) -> "ElementHandle":
        self._doc.unbind(self._el, event)
        return self

    def handlers(self, event: str) -> List[Handler]:
        return self._doc.handlers_for(self._el, event)

    def trigger(self, event: Union[str, ViewEvent], **data: Any) -> ViewEvent:
        return self._doc.trigger(self, event, **data)

    def focus(self) -> "ElementHandle":
        self._doc.set_focus(self)
        return self

    def blur(self) -> "ElementHandle":
        if self._doc.focused == self:
            self._doc.set_focus(None)
        return self


class ViewDocument:
    """Owner of the view tree, its focus and its handler registry.

    Handlers are keyed by lxml element; a proxy stays valid as long as the
    registry keeps a reference to it, so lookups by element are stable.
    """

    def __init__(self, root: etree._Element) -> None:
        self._root = root
        self._handlers: Dict[etree._Element, Dict[str, List[Handler]]] = {}
        self._focused: Optional[etree._Element] = None

    @classmethod
    def from_html(cls, markup: str) -> "ViewDocument":
        """Parse a page or fragment; the result always has a single root."""
        root = _parse_fragment(markup)
        return cls(root)

    # ----------------------------------------------------------------- tree
    @property
    def root(self) -> ElementHandle:
        return ElementHandle(self._root, self)

    def wrap(self, element: etree._Element) -> ElementHandle:
        return ElementHandle(element, self)

    def create(self, tag: str, classes: str = "", text: Optional[str] = None, **attrs: Any) -> ElementHandle:
        el = lxml_html.Element(tag)
        if classes:
            el.set("class", classes)
        for name, value in attrs.items():
            if value is not None:
                el.set(name.replace("_", "-"), str(value))
        if text is not None:
            el.text = text
        return self.wrap(el)

    def parse_fragment(self, markup: str) -> ElementHandle:
        """Parse *markup* into a detached container element of this document."""
        return self.wrap(_parse_fragment(markup))

    def find(self, classes: str, **kwargs: Any) -> Optional[ElementHandle]:
        return self.root.find(classes, **kwargs)

    def find_all(self, classes: str, **kwargs: Any) -> List[ElementHandle]:
        return self.root.find_all(classes, **kwargs)

    # ---------------------------------------------------------------- focus
    @property
    def focused(self) -> Optional[ElementHandle]:
        return self.wrap(self._focused) if self._focused is not None else None

    def set_focus(self, handle: Optional[ElementHandle]) -> None:
        self._focused = handle.element if handle is not None else None

    # ------------------------------------------------------------- handlers
    def bind(self, element: etree._Element, event: str, handler: Handler) -> None:
        self._handlers.setdefault(element, {}).setdefault(event, []).append(handler)

    def unbind(self, element: etree._Element, event: Optional[str] = None) -> None:
        if event is None:
            self._handlers.pop(element, None)
            return
        events = self._handlers.get(element)
        if events:
            events.pop(event, None)

    def handlers_for(self, element: etree._Element, event: str) -> List[Handler]:
        return list(self._handlers.get(element, {}).get(event, ()))

    def forget_subtree(self, element: etree._Element) -> None:
        """Drop handlers bound to *element* and its descendants."""
        for el in element.iter():
            self._handlers.pop(el, None)
        if self._focused is not None:
            current = self._focused
            while current is not None:
                if current is element:
                    self._focused = None
                    break
                current = current.getparent()

    def trigger(self, target: ElementHandle, event: Union[str, ViewEvent], **data: Any) -> ViewEvent:
        """Dispatch *event* to the handlers bound on *target*, then bubble up."""
        if isinstance(event, str):
            event = ViewEvent(event, target=target, key=data.pop("key", None),
                              shift=bool(data.pop("shift", False)), data=data)
        elif event.target is None:
            event.target = target
        current: Optional[etree._Element] = target.element
        while current is not None and not event.propagation_stopped:
            for handler in self.handlers_for(current, event.type):
                handler(event)
            current = current.getparent()
        return event


def extract_root(document: ViewDocument, markup: str,
                 classes: str = "shelf-browse display") -> Optional[ElementHandle]:
    """Parse a fetched page and return its element carrying *classes*.

    Works whether the server answered with the whole page or with the popup
    fragment only.
    """
    fragment = document.parse_fragment(markup)
    if set(classes.split()) <= set(fragment.classes):
        return fragment
    return fragment.find(classes)
