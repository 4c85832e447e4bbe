from conftest import BASE_URL

from shelf_browse.core.geometry import Viewport
from shelf_browse.ui.controllers import ModalHostAdapter
from shelf_browse.ui.host import RESIZE_EVENT
from shelf_browse.ui.view import ViewDocument

CATALOG_URL = BASE_URL + "/catalog/123"

LINKS = """
<div class="shelf-browse links">
  <a class="browse-button" href="/shelf_browse?start=K7">Browse the shelf</a>
  <span class="call-number browse"><a href="/shelf_browse?start=QA76">QA76 .P98</a></span>
</div>
"""


class FakeModal:
    def __init__(self):
        self.opened = []
        self.resized = []
        self.closed = 0
        self.callbacks = None

    def open(self, url, *, width, height, callbacks):
        self.opened.append((url, width, height))
        self.callbacks = callbacks

    def resize(self, width, height):
        self.resized.append((width, height))

    def close(self):
        self.closed += 1


def _adapter(make_controller, host):
    host.url = CATALOG_URL
    controller = make_controller()
    modal = FakeModal()
    return ModalHostAdapter(controller, modal), modal


def test_create_popup_opens_modal_with_popup_geometry(make_controller, host):
    adapter, modal = _adapter(make_controller, host)

    path = adapter.create_popup("/shelf_browse?start=K7")

    # (600 - 60 - 116) / 119.2 tiles fit the modal
    assert path == "/shelf_browse?start=K7&popup=true&width=3"
    assert modal.opened == [(path, "533.6px", "99%")]
    assert adapter.controller.session.status.popup is True
    assert adapter.create_popup(None) is None


def test_lifecycle_callbacks_drive_the_status(make_controller, host):
    adapter, modal = _adapter(make_controller, host)
    adapter.create_popup("/shelf_browse?start=K7")
    status = adapter.controller.session.status
    callbacks = modal.callbacks

    callbacks.on_open()
    assert status.active
    callbacks.on_load()
    assert status.loading
    assert modal.resized == []

    callbacks.on_complete()
    assert not status.loading
    assert status.key_handler_installed

    callbacks.on_cleanup()
    assert not status.key_handler_installed
    callbacks.on_closed()
    assert not status.active


def test_load_resizes_when_the_window_changed(make_controller, host):
    adapter, modal = _adapter(make_controller, host)
    adapter.create_popup("/shelf_browse?start=K7")
    host.viewport_value = Viewport(width=1024, height=800)

    modal.callbacks.on_load()
    modal.callbacks.on_load()

    assert modal.resized == [("1010.4px", "99%")]


def test_close_button_closes_the_modal(make_controller, host):
    adapter, modal = _adapter(make_controller, host)
    adapter.create_popup("/shelf_browse?start=K7")
    modal.callbacks.on_open()
    modal.callbacks.on_complete()

    adapter.controller.view.find("header-area").find("close-button").trigger("click")
    assert modal.closed == 1


def test_window_resize_recreates_the_popup(make_controller, host):
    adapter, modal = _adapter(make_controller, host)
    adapter.create_popup("/shelf_browse?start=K7", extra_metadata="full")
    modal.callbacks.on_open()
    modal.callbacks.on_complete()

    host.viewport_value = Viewport(width=1024, height=800)
    host.fire(RESIZE_EVENT)
    host.advance(500)

    assert modal.closed == 1
    assert modal.opened[-1] == ("/shelf_browse?start=K7&popup=true&width=7&extra_metadata=full", "1010.4px", "99%")


def test_links_open_the_popup(make_controller, host):
    adapter, modal = _adapter(make_controller, host)
    page = ViewDocument.from_html(LINKS)

    assert adapter.setup_links(page.root) == 2
    call_number = page.find("call-number").find(tag="a")
    assert call_number.get("aria-haspopup") == "dialog"
    assert call_number.get("role") == "button"

    call_number.trigger("click")
    assert modal.opened[-1][0] == "/shelf_browse?start=QA76&popup=true&width=3"


def test_links_are_not_wired_while_active(make_controller, host):
    adapter, _ = _adapter(make_controller, host)
    adapter.controller.session.status.active = True
    assert adapter.setup_links(ViewDocument.from_html(LINKS).root) == 0
