from __future__ import annotations

import logging
from typing import Optional

from shelf_browse.ui.view import ElementHandle, Handler, ViewDocument

logger = logging.getLogger(__name__)

DISPLAY_CLASSES = "shelf-browse display"


def find_display(view: ViewDocument, operation: str) -> Optional[ElementHandle]:
    """Return the widget's root container, logging when it is absent."""
    display = view.find(DISPLAY_CLASSES)
    if display is None:
        logger.error("%s: missing .shelf-browse.display", operation)
    return display


def rebind(element: Optional[ElementHandle], event: str, handler: Handler) -> None:
    """Bind *handler* as the only handler of *event* on *element*."""
    if element is None:
        return
    element.unbind(event)
    element.bind(event, handler)
