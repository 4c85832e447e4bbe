"""Host window adapter.

The shelf browse coordinators are GUI-agnostic: everything they need from
the surrounding application (timers, window-level events, window size, the
current page URL and a way to run blocking work off the UI thread) comes
through a :class:`HostWindow`.  :class:`TkHost` implements it on top of a
Tk widget; tests supply a fake with a manual clock.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from shelf_browse.core.geometry import Viewport

logger = logging.getLogger(__name__)

__all__ = ["HostWindow", "TkHost", "KEY_EVENT", "RESIZE_EVENT"]

KEY_EVENT = "<Key>"
RESIZE_EVENT = "<Configure>"


@runtime_checkable
class HostWindow(Protocol):
    """Operations the widget needs from its hosting window."""

    def after(self, ms: int, fn: Callable[[], None]) -> Any:
        """Schedule *fn* on the UI thread after *ms* milliseconds."""
        ...

    def after_cancel(self, timer_id: Any) -> None:
        ...

    def bind(self, sequence: str, handler: Callable[[Any], Any]) -> None:
        """Install a window-level handler for ``KEY_EVENT`` or ``RESIZE_EVENT``."""
        ...

    def unbind(self, sequence: str) -> None:
        ...

    def viewport(self) -> Viewport:
        ...

    def current_url(self) -> str:
        ...

    def run_in_thread(self, work_fn: Callable[[], object],
                      done_fn: Optional[Callable[[object], None]] = None) -> None:
        """Run *work_fn* off the UI thread and deliver its result to *done_fn* on it."""
        ...


class TkHost:
    """:class:`HostWindow` backed by a Tk widget.

    Parameters
    ----------
    widget : tkinter.Misc
        Any widget of the hosting Tk application (its toplevel receives the
        window-level bindings).
    url_getter : Callable[[], str]
        Returns the URL of the page currently shown by the application.
    """

    def __init__(self, widget: Any, url_getter: Callable[[], str]) -> None:
        self._widget = widget
        self._url_getter = url_getter
        self._bindings: dict = {}

    def after(self, ms: int, fn: Callable[[], None]) -> Any:
        return self._widget.after(ms, fn)

    def after_cancel(self, timer_id: Any) -> None:
        try:
            self._widget.after_cancel(timer_id)
        except Exception:
            logger.debug("Timer %s already gone", timer_id)

    def bind(self, sequence: str, handler: Callable[[Any], Any]) -> None:
        toplevel = self._widget.winfo_toplevel()
        self._bindings[sequence] = toplevel.bind(sequence, handler, add="+")

    def unbind(self, sequence: str) -> None:
        funcid = self._bindings.pop(sequence, None)
        if funcid is None:
            return
        toplevel = self._widget.winfo_toplevel()
        try:
            toplevel.unbind(sequence, funcid)
        except Exception:
            logger.debug("Binding %s already removed", sequence)

    def viewport(self) -> Viewport:
        toplevel = self._widget.winfo_toplevel()
        return Viewport(
            width=float(toplevel.winfo_width()),
            height=float(toplevel.winfo_height()),
            screen_height=float(toplevel.winfo_screenheight()),
        )

    def current_url(self) -> str:
        return self._url_getter()

    def run_in_thread(self, work_fn: Callable[[], object],
                      done_fn: Optional[Callable[[object], None]] = None) -> None:
        """Run work_fn in a daemon thread; deliver result to done_fn via Tk after()."""
        def _runner():
            try:
                result = work_fn()
            except Exception:
                logger.exception("Background work failed")
                result = None
            try:
                self._widget.after(0, (lambda r=result: done_fn(r) if callable(done_fn) else None))
            except Exception:
                logger.debug("Host window gone before delivery")
        threading.Thread(target=_runner, daemon=True).start()
