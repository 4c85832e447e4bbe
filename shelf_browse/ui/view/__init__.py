"""Headless view layer: lxml element handles, events and the owning document."""

from .elements import (  # noqa: F401
    ElementHandle,
    Handler,
    ViewDocument,
    ViewEvent,
    class_predicate,
    css_number,
    extract_root,
)

__all__ = [
    "ElementHandle",
    "Handler",
    "ViewDocument",
    "ViewEvent",
    "class_predicate",
    "css_number",
    "extract_root",
]
