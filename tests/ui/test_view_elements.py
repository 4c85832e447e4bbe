import pytest

from shelf_browse.core.exceptions import MissingElementError
from shelf_browse.ui.view import ViewDocument, class_predicate, css_number, extract_root


def test_find_matches_whole_class_names(view):
    assert view.find("page-scroller").has_class("page-scroller")
    assert view.find("page-scroller tile-container") is None
    assert len(view.find_all("item-tile")) == 4
    assert view.find("page-forward", attrs={"data-step": "10"}).get("data-path") == "/shelf_browse?start=P1"
    assert class_predicate(None) == "true()"


def test_single_logs_or_raises(view, caplog):
    display = view.find("shelf-browse display")
    assert display.single("item-tile", operation="probe").get("data-tile") == "t1"
    assert "4 item-tile elements" in caplog.text
    assert display.single("no-such-thing") is None
    with pytest.raises(MissingElementError, match="attach: missing header"):
        display.single("no-such-thing", label="header", operation="attach", required=True)


def test_class_and_style_helpers():
    document = ViewDocument.from_html('<div class="a" style="height: 200px">x</div>')
    element = document.find("a")
    element.add_class("b", "a").toggle_class("c")
    assert element.classes == ["a", "b", "c"]
    element.remove_class("a", "b", "c")
    assert element.get("class") is None

    assert element.css("height") == "200px"
    element.hide()
    assert not element.displayed
    element.show().set_css("height", None)
    assert element.get("style") == "display: block"
    assert css_number("48.4%") == 48.4
    assert css_number("auto") is None


def test_scroll_metrics_live_in_data_attributes(view):
    details = view.find("item-details")
    assert details.max_scroll == 200
    details.scroll_top = -5
    assert details.scroll_top == 0
    details.scroll_top = 120
    assert details.get("data-scroll-top") == "120"


def test_events_bubble_until_stopped(view):
    seen = []
    tile = view.find("item-tile")
    item = tile.find("item")
    tile.bind("click", lambda event: seen.append(("tile", event.target)))
    view.find("shelf-browse display").bind("click", lambda event: seen.append(("display", event.target)))

    item.trigger("click")
    assert seen == [("tile", item), ("display", item)]

    seen.clear()
    item.bind("click", lambda event: event.stop_propagation())
    event = item.trigger("click", key="x", size="10px")
    assert seen == []
    assert event.propagation_stopped
    assert event.data == {"size": "10px"}


def test_remove_forgets_handlers_but_detach_keeps_them(view):
    tile = view.find("item-tile")
    metadata = tile.find("item-metadata")
    metadata.bind("click", lambda event: None)
    tile.bind("click", lambda event: None)

    metadata.detach()
    assert metadata.handlers("click")
    view.find("item-details").append(metadata)

    tile.remove()
    assert tile.handlers("click") == []
    assert metadata.handlers("click")
    assert not tile.is_attached()
    assert metadata.is_attached()


def test_set_html_and_text(view):
    caption = view.find("current-range-area")
    assert "K5" in caption.text
    caption.set_html('<b class="x">new</b> caption')
    assert caption.find("x").text == "new"
    assert caption.inner_html() == '<b class="x">new</b> caption'
    caption.set_text("plain")
    assert caption.children() == []
    assert caption.outer_html().startswith('<div class="current-range-area">plain')


def test_focus_is_cleared_when_the_element_goes_away(view):
    item = view.find("item")
    item.focus()
    assert view.focused == item
    item.closest("item-tile").remove()
    assert view.focused is None


def test_extract_root_accepts_page_or_fragment(view, display_html):
    page = "<html><body><h1>Catalog</h1>" + display_html + "</body></html>"
    assert extract_root(view, page).has_class("display")
    assert extract_root(view, display_html).has_class("display")
    assert extract_root(view, "<p>nothing</p>") is None
