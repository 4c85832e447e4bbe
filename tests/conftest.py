"""Shared fixtures for the shelf browse tests.

The fakes below stand in for the hosting window (manual clock, recorded
bindings, synchronous or deferred background work) and for the
``requests.Session`` used by the fetch service.
"""

from pathlib import Path

import pytest

from shelf_browse.app import create_controller
from shelf_browse.config import ConfigManager
from shelf_browse.core import lcc_cache
from shelf_browse.core.feature_status import ShelfBrowseSession
from shelf_browse.core.geometry import Viewport
from shelf_browse.core.lcc_cache import ClassificationTreeCache
from shelf_browse.core.models import Configuration
from shelf_browse.core.services import FetchService, TreeStateStore
from shelf_browse.ui.view import ViewDocument

FIXTURES = Path(__file__).parent / "fixtures"
BASE_URL = "http://catalog.test"
PAGE_URL = BASE_URL + "/shelf_browse?start=K7"

# Holds exactly the four tiles of the fixture page (see compute_geometry).
FOUR_TILE_VIEWPORT = Viewport(width=600, height=800)

_MISSING = object()


class FakeHost:
    """HostWindow with a manual clock."""

    def __init__(self, url=PAGE_URL, viewport=FOUR_TILE_VIEWPORT):
        self.url = url
        self.viewport_value = viewport
        self.now = 0
        self._timers = {}
        self._next_id = 0
        self.bind_calls = []
        self.unbind_calls = []
        self.bindings = {}
        self.deferred = False
        self.pending = []

    # timers
    def after(self, ms, fn):
        self._next_id += 1
        self._timers[self._next_id] = (self.now + ms, fn)
        return self._next_id

    def after_cancel(self, timer_id):
        self._timers.pop(timer_id, None)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = sorted((when, tid) for tid, (when, _) in self._timers.items() if when <= target)
            if not due:
                break
            when, tid = due[0]
            _, fn = self._timers.pop(tid)
            self.now = when
            fn()
        self.now = target

    @property
    def timers_pending(self):
        return len(self._timers)

    # window events
    def bind(self, sequence, handler):
        self.bind_calls.append(sequence)
        self.bindings[sequence] = handler

    def unbind(self, sequence):
        self.unbind_calls.append(sequence)
        self.bindings.pop(sequence, None)

    def fire(self, sequence, event=None):
        return self.bindings[sequence](event)

    def viewport(self):
        return self.viewport_value

    def current_url(self):
        return self.url

    # background work
    def run_in_thread(self, work_fn, done_fn=None):
        if self.deferred:
            self.pending.append((work_fn, done_fn))
            return
        result = work_fn()
        if done_fn is not None:
            done_fn(result)

    def flush(self):
        while self.pending:
            work_fn, done_fn = self.pending.pop(0)
            result = work_fn()
            if done_fn is not None:
                done_fn(result)


class FakeResponse:
    def __init__(self, status_code=200, text="", json_data=_MISSING):
        self.status_code = status_code
        self.text = text
        self._json = json_data

    def json(self):
        if self._json is _MISSING:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeHttp:
    """requests.Session stand-in; unknown URLs answer 404."""

    def __init__(self):
        self.headers = {}
        self.responses = {}
        self.calls = []

    def add(self, url, text="", status=200, json=_MISSING, error=None):
        self.responses[url] = error if error is not None else FakeResponse(status, text, json)

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        entry = self.responses.get(url)
        if entry is None:
            entry = self.responses.get(url.split("?", 1)[0])
        if entry is None:
            return FakeResponse(404, "Not Found")
        if isinstance(entry, Exception):
            raise entry
        return entry

    def urls(self, method=None):
        return [url for m, url, _ in self.calls if method is None or m == method]

    def close(self):
        pass


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the user config at a temp dir and forget process-wide caches."""
    monkeypatch.setenv("SHELF_BROWSE_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setattr(lcc_cache, "_CACHE", None)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def display_html():
    return (FIXTURES / "shelf_display.html").read_text(encoding="utf-8")


@pytest.fixture
def view(display_html):
    return ViewDocument.from_html(display_html)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def session(http, tmp_path):
    return ShelfBrowseSession(
        Configuration(),
        FetchService(BASE_URL, session=http),
        tree_cache=ClassificationTreeCache(),
        tree_state=TreeStateStore(tmp_path / "tree_state.json"),
        labels=ConfigManager().get_labels(),
    )


@pytest.fixture
def make_controller(host, http, display_html, tmp_path):
    def _make(markup=None, server=None, providers=None):
        document = ViewDocument.from_html(markup or display_html)
        return create_controller(
            host,
            document,
            base_url=BASE_URL,
            server=server,
            providers=providers,
            http_session=http,
            tree_state_path=tmp_path / "tree_state.json",
        )
    return _make
