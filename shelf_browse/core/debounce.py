"""Trailing-edge debouncing on top of a Tk-style scheduler.

Bursts of calls (window resize storms in particular) collapse into a single
invocation once the caller has been quiet for ``threshold_ms``.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Tuple

__all__ = ["Debounced", "debounce", "MIN_DEBOUNCE_DELAY"]

MIN_DEBOUNCE_DELAY = 500


class Debounced:
    """Callable wrapper returned by :func:`debounce`.

    Parameters
    ----------
    fn : Callable
        Function to run.
    threshold_ms : int
        Quiet period before *fn* runs.
    leading : bool
        Run *fn* on the first call of a burst instead of after it.
    after : Callable[[int, Callable[[], None]], object]
        Tk-like scheduler (``widget.after``) returning a timer id.
    after_cancel : Callable[[object], None]
        Cancels a timer id returned by *after*.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        threshold_ms: int,
        leading: bool,
        *,
        after: Callable[[int, Callable[[], None]], object],
        after_cancel: Callable[[object], None],
    ) -> None:
        self._fn = fn
        self._threshold = threshold_ms if threshold_ms and threshold_ms > 0 else MIN_DEBOUNCE_DELAY
        self._leading = leading
        self._after = after
        self._after_cancel = after_cancel
        self._timer: Optional[object] = None
        self._args: Tuple[Any, ...] = ()
        self._kwargs: dict = {}

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self._args, self._kwargs = args, kwargs
        if self._timer is not None:
            self._after_cancel(self._timer)
        elif self._leading:
            self._fn(*args, **kwargs)
        self._timer = self._after(self._threshold, self._fire)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def function(self) -> Callable[..., Any]:
        return self._fn

    def cancel(self) -> None:
        if self._timer is not None:
            self._after_cancel(self._timer)
            self._timer = None

    def flush(self) -> None:
        """Run a pending trailing call now."""
        if self._timer is None:
            return
        self.cancel()
        if not self._leading:
            self._fn(*self._args, **self._kwargs)

    def _fire(self) -> None:
        self._timer = None
        if not self._leading:
            self._fn(*self._args, **self._kwargs)


def debounce(
    fn: Callable[..., Any],
    threshold_ms: int = MIN_DEBOUNCE_DELAY,
    leading: bool = False,
    *,
    after: Callable[[int, Callable[[], None]], object],
    after_cancel: Callable[[object], None],
) -> Debounced:
    """Return a debounced version of *fn* driven by the given scheduler."""
    return Debounced(fn, threshold_ms, leading, after=after, after_cancel=after_cancel)
