from conftest import BASE_URL, PAGE_URL

from shelf_browse.core.geometry import Viewport
from shelf_browse.core.models import DecorationFeature
from shelf_browse.ui.coordinators.paging_coordinator import infer_motion, shelf_key_order
from shelf_browse.ui.host import RESIZE_EVENT

WIDE = Viewport(width=1024, height=800)


def _page_gets(http):
    return [url for url in http.urls("GET") if "/shelf_browse?" in url]


def _next_page(display_html):
    return display_html.replace("Item one", "Item eleven")


def _started(make_controller, **kwargs):
    controller = make_controller(**kwargs)
    assert controller.start_page(PAGE_URL)
    return controller


def test_motion_is_inferred_from_the_visible_range():
    assert infer_motion("K3", "K5", "K9") == "left"
    assert infer_motion("K12", "K5", "K9") == "right"
    assert infer_motion("K7", "K5", "K9") is None
    assert infer_motion("K5", "K5", "K9") == "left"
    assert infer_motion(None, "K5", "K9") is None


def test_shelf_keys_compare_digit_runs_numerically():
    assert shelf_key_order("K10") > shelf_key_order("K9")
    assert shelf_key_order("QA76.73") < shelf_key_order("QA100")


def test_build_url_replaces_managed_parameters(make_controller, host):
    controller = _started(make_controller)
    url = controller.paging.build_url("/shelf_browse?start=K7&popup=true&width=9", popup=True)
    assert url == "/shelf_browse?start=K7&popup=true&width=4"
    assert controller.session.status.base_url == "/shelf_browse?start=K7&popup=true&width=9"
    assert controller.session.status.full_url == url

    host.url = BASE_URL + "/shelf_browse?start=A1"
    controller.session.status.skip = {DecorationFeature.COVERS}
    assert controller.paging.build_url() == BASE_URL + "/shelf_browse?start=A1&skip=covers&popup=false&width=4"


def test_goto_page_replaces_content_and_reattaches(make_controller, http, display_html):
    calls = []
    controller = _started(make_controller, providers={DecorationFeature.ANALYTICS: calls.append})
    http.add(BASE_URL + "/shelf_browse", text="<html><body>" + _next_page(display_html) + "</body></html>")

    forward = controller.view.find("page-forward", attrs={"data-step": "1"})
    forward.trigger("click")

    status = controller.session.status
    assert _page_gets(http) == [BASE_URL + "/shelf_browse?start=K10&popup=false&width=4"]
    assert "Item eleven" in controller.view.find("item-details").text
    assert not status.loading and not status.load_failed
    assert controller.view.find("shelf-browse display").get("aria-busy") == "false"
    assert controller.view.find("progress-bar") is None
    # New tiles are wired again.
    assert controller.view.find_all("item-tile")[3].handlers("click")
    assert len(calls) == 2


def test_progress_bar_shows_direction_while_loading(make_controller, host, http, display_html):
    controller = _started(make_controller)
    http.add(BASE_URL + "/shelf_browse", text=_next_page(display_html))
    host.deferred = True

    controller.view.find("range-frame").find("range").trigger("click")

    bar = controller.view.find("progress-bar")
    assert bar is not None and bar.has_class("right")
    assert controller.view.find("current-range-first") is None
    assert controller.session.status.loading

    host.flush()
    assert controller.view.find("progress-bar") is None
    assert not controller.session.status.loading


def test_stale_response_is_discarded(make_controller, host, http, display_html):
    calls = []
    controller = _started(make_controller, providers={DecorationFeature.ANALYTICS: calls.append})
    http.add(BASE_URL + "/shelf_browse", text=_next_page(display_html))
    host.deferred = True

    controller.paging.goto_page("/shelf_browse?start=A1", "left")
    controller.paging.goto_page("/shelf_browse?start=P1", "right")
    assert controller.session.status.request_seq == 2
    host.flush()

    assert len(_page_gets(http)) == 2
    # Only the newest response re-attached the display.
    assert len(calls) == 2
    assert not controller.session.status.loading


def test_failed_load_reverts_indicator_and_offers_retry(make_controller, http, display_html):
    controller = _started(make_controller)

    controller.view.find("origin").trigger("click")

    status = controller.session.status
    assert status.load_failed and not status.loading
    area = controller.view.find("current-range-area")
    assert area.find("current-range-first").get("data-shelfkey") == "K5"
    assert "to" in area.text
    button = controller.view.find("retry-button")
    assert button.get("data-path") == "/shelf_browse?start=K7&popup=false&width=4"

    http.add(BASE_URL + "/shelf_browse", text=_next_page(display_html))
    button.trigger("click")
    assert controller.view.find("load-error") is None
    assert not status.load_failed
    assert "Item eleven" in controller.view.find("item-details").text


def test_content_without_display_counts_as_failure(make_controller, http):
    controller = _started(make_controller)
    http.add(BASE_URL + "/shelf_browse", text="<p>maintenance</p>")
    controller.paging.goto_page("/shelf_browse?start=K10")
    assert controller.session.status.load_failed
    assert controller.view.find("item-tile") is not None


def test_resize_burst_reloads_once(make_controller, host, http, display_html):
    controller = _started(make_controller)
    http.add(BASE_URL + "/shelf_browse", text=display_html)
    host.viewport_value = WIDE

    for _ in range(10):
        host.fire(RESIZE_EVENT)
        host.advance(50)
    assert _page_gets(http) == []

    host.advance(500)
    assert _page_gets(http) == [BASE_URL + "/shelf_browse?start=K7&popup=false&width=7"]
    assert not controller.session.status.browser_resizing
    assert controller.view.find("shelf-browse display").css("width") == "1024px"


def test_resize_without_capacity_change_does_nothing(make_controller, host, http):
    _started(make_controller)
    host.viewport_value = Viewport(width=650, height=900)
    host.fire(RESIZE_EVENT)
    host.advance(500)
    assert _page_gets(http) == []


def test_resize_during_overlay_is_replayed_when_it_closes(make_controller, host, http, display_html):
    controller = _started(make_controller)
    http.add(BASE_URL + "/shelf_browse", text=display_html)
    help_button = controller.view.find("header-area").find("help-button")

    help_button.trigger("click")
    host.viewport_value = WIDE
    host.fire(RESIZE_EVENT)
    host.advance(500)
    assert controller.session.status.resize_pending
    assert _page_gets(http) == []

    help_button.trigger("click")
    assert not controller.session.status.resize_pending
    assert len(_page_gets(http)) == 1


def test_capacity_and_item_info_height(make_controller, host):
    controller = _started(make_controller)
    host.viewport_value = Viewport(width=1024, height=1200)
    assert controller.paging.capacity() == 7
    controller.paging.set_display_size()
    assert controller.view.find("item-info").css("height") == "720px"


def test_page_without_matching_control(make_controller):
    controller = _started(make_controller)
    assert controller.paging.page("forward", 10)
    assert not controller.paging.page("forward", 5)
