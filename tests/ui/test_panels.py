from conftest import BASE_URL, PAGE_URL

from shelf_browse.core.models import DecorationFeature
from shelf_browse.ui.coordinators.panel_coordinator import ITEM_RANGES


def _started(make_controller, **kwargs):
    controller = make_controller(**kwargs)
    controller.start_page(PAGE_URL)
    return controller


def test_first_attach_records_initial_sizes(make_controller):
    controller = _started(make_controller)
    status = controller.session.status
    assert status.item_ranges_width_init == "40%"
    assert status.page_scroller_height_init == "200px"
    assert status.page_scroller_height_min == 200
    assert status.item_ranges_width is None


def test_dragged_sizes_survive_content_replacement(make_controller, http, display_html):
    controller = _started(make_controller)
    http.add(BASE_URL + "/shelf_browse", text=display_html)
    separator = controller.view.find("item-info-separator")

    separator.trigger("dragstart")
    assert controller.session.status.splitter_dragging
    separator.trigger("dragend", size="30%")
    assert controller.session.status.item_ranges_width == "30%"
    assert not controller.session.status.splitter_dragging

    controller.paging.goto_page("/shelf_browse?start=K10")
    assert controller.view.find("item-ranges").css("width") == "30%"


def test_page_scroller_cannot_shrink_below_its_initial_height(make_controller):
    controller = _started(make_controller)
    separator = controller.view.find("page-scroller-separator")

    separator.trigger("dragend", size="120px")
    assert controller.session.status.page_scroller_height == "200px"
    assert controller.view.find("page-scroller").css("height") == "200px"

    separator.trigger("dragend", size="260px")
    assert controller.session.status.page_scroller_height == "260px"


def test_double_click_resets_to_the_initial_size(make_controller):
    controller = _started(make_controller)
    separator = controller.view.find("item-info-separator")
    separator.trigger("dragend", size="25%")

    separator.trigger("dblclick")

    assert controller.view.find("item-ranges").css("width") == "40%"
    assert controller.session.status.item_ranges_width is None


def test_reset_falls_back_to_configured_default(make_controller):
    controller = _started(make_controller)
    controller.session.status.item_ranges_width_init = None
    panel = controller.view.find("item-ranges")
    controller.panels.reset(ITEM_RANGES, panel)
    assert panel.css("width") == "48.4%"


def test_splitter_highlight_is_suppressed_while_dragging(make_controller):
    controller = _started(make_controller)
    separator = controller.view.find("item-info-separator")

    separator.trigger("mouseenter")
    assert separator.css("background-color") == "orange"
    assert separator.get("title") == "Drag to resize; double-click to reset."
    separator.trigger("mouseleave")
    assert separator.css("background-color") == "transparent"

    event = separator.trigger("dragstart")
    assert event.default_prevented
    separator.trigger("mouseenter")
    assert separator.css("background-color") == "transparent"


def test_ranges_resize_refreshes_details_decorations(make_controller):
    seen = []
    controller = _started(make_controller, providers={DecorationFeature.COPYRIGHT: seen.append})
    seen.clear()
    controller.view.find("item-info-separator").trigger("dragend", size="35%")
    assert seen == [controller.view.find("item-details")]
