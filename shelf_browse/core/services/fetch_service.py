"""HTTP transport for shelf content, the classification tree and request dialogs.

All network traffic of the widget goes through :class:`FetchService`, which
wraps a ``requests.Session`` and converts every failure (connection errors,
timeouts, HTTP error statuses, undecodable JSON) into
:class:`~shelf_browse.core.exceptions.TransportError`.

Calls are blocking; coordinators run them through the host's
``run_in_thread`` with :meth:`FetchService.fetch_async`, which returns a
:class:`FetchHandle` whose ``cancel()`` discards the eventual result.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Tuple
from urllib.parse import urljoin

import requests

from shelf_browse.core.exceptions import TransportError

logger = logging.getLogger(__name__)

__all__ = ["FetchService", "FetchHandle", "RunInThread"]

RunInThread = Callable[[Callable[[], object], Optional[Callable[[object], None]]], None]


class FetchHandle:
    """Cancellation token for one asynchronous fetch."""

    def __init__(self, url: Optional[str] = None) -> None:
        self.url = url
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class FetchService:
    """Blocking HTTP helpers built on ``requests``.

    Parameters
    ----------
    base_url : str, optional
        Origin against which relative paths are resolved.
    timeout : float
        Per-request timeout in seconds.
    user_agent : str, optional
    session : requests.Session, optional
        Injected for tests; a new session is created otherwise.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: float = 30,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers["User-Agent"] = user_agent

    @classmethod
    def from_config(cls, base_url: Optional[str] = None, transport: Optional[Mapping[str, Any]] = None,
                    session: Optional[requests.Session] = None) -> "FetchService":
        transport = transport or {}
        return cls(
            base_url,
            timeout=float(transport.get("timeout_seconds") or 30),
            user_agent=transport.get("user_agent"),
            session=session,
        )

    # -------------------------------------------------------------- requests
    def absolute(self, url: str) -> str:
        return urljoin(self.base_url, url) if self.base_url else url

    def get_text(self, url: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """GET *url* and return the body as text (HTML fragments)."""
        response = self._request("GET", url, params=params)
        return response.text

    def get_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = self._request("GET", url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {url}", url=url,
                                 status_code=response.status_code, payload=response.text,
                                 cause=exc) from exc

    def submit_form(self, url: str, method: str = "POST",
                    data: Optional[Any] = None) -> str:
        """Submit form fields with the form's method and return the response body."""
        method = (method or "POST").upper()
        if method == "GET":
            response = self._request("GET", url, params=data)
        else:
            response = self._request(method, url, data=data)
        return response.text

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        target = self.absolute(url)
        logger.debug("%s %s", method, target)
        try:
            response = self._session.request(method, target, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            raise TransportError(f"Request timeout while fetching {target}", url=target, cause=exc) from exc
        except requests.exceptions.ConnectionError as exc:
            raise TransportError(f"Connection error while fetching {target}", url=target, cause=exc) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Request failed: {exc}", url=target, cause=exc) from exc

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code} from {target}",
                url=target,
                status_code=response.status_code,
                payload=response.text,
            )
        return response

    # ----------------------------------------------------------------- async
    def fetch_async(
        self,
        run_in_thread: RunInThread,
        work: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[TransportError], None],
        *,
        url: Optional[str] = None,
    ) -> FetchHandle:
        """Run blocking *work* off the UI thread and deliver the outcome.

        Exactly one of *on_success* or *on_error* runs on the UI thread unless
        the returned handle was cancelled first.
        """
        handle = FetchHandle(url)

        def _work() -> Tuple[bool, Any]:
            try:
                return True, work()
            except TransportError as exc:
                return False, exc

        def _done(result: object) -> None:
            if handle.cancelled:
                logger.debug("Discarding cancelled fetch %s", url)
                return
            ok, value = result  # type: ignore[misc]
            if ok:
                on_success(value)
            else:
                on_error(value)

        run_in_thread(_work, _done)
        return handle

    def close(self) -> None:
        self._session.close()
