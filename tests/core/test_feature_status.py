from shelf_browse.core.feature_status import FeatureStatus, ShelfBrowseSession
from shelf_browse.core.models import (
    Configuration,
    DecorationFeature,
    ElementTarget,
    LiteralTarget,
    OverlayKind,
    as_target,
    normalize_key,
    parse_skip,
    resolve_target,
)
from shelf_browse.ui.view import ViewDocument


def test_input_is_blocked_until_active_and_idle():
    status = FeatureStatus()
    assert status.input_blocked

    status.active = True
    assert not status.input_blocked

    for flag in ("loading", "browser_resizing"):
        setattr(status, flag, True)
        assert status.input_blocked
        setattr(status, flag, False)

    status.add_overlay(OverlayKind.HELP)
    assert status.input_blocked


def test_overlays_are_recorded_once_by_name():
    status = FeatureStatus()
    status.add_overlay(OverlayKind.HELP)
    status.add_overlay("help")
    status.add_overlay(OverlayKind.REQUEST_DIALOG)
    assert status.open_overlays == ["help", "request-dialog"]
    assert status.overlay_open(OverlayKind.HELP)

    status.remove_overlay(OverlayKind.HELP)
    assert status.open_overlays == ["request-dialog"]
    status.clear_overlays()
    assert not status.any_overlay_open


def test_resize_is_deferred_only_while_an_overlay_is_open():
    status = FeatureStatus()
    assert status.defer_resize() is False
    assert not status.resize_pending

    status.add_overlay(OverlayKind.CLASSIFICATION_TREE)
    assert status.defer_resize() is True
    assert status.take_pending_resize() is False

    status.remove_overlay(OverlayKind.CLASSIFICATION_TREE)
    assert status.take_pending_resize() is True
    assert status.take_pending_resize() is False


def test_snapshot_is_plain_values():
    status = FeatureStatus(skip={DecorationFeature.COVERS, DecorationFeature.ANALYTICS})
    status.key_handler = lambda event: None
    snapshot = status.snapshot()
    assert snapshot["skip"] == ["analytics", "covers"]
    assert snapshot["key_handler_installed"] is True
    assert snapshot["resize_handler_installed"] is False


def test_session_reset_keeps_tree_cache(session):
    cache = session.tree_cache
    session.status.active = True
    fresh = session.reset_status()
    assert fresh.active is False
    assert session.tree_cache is cache
    assert session.label("lcc_open") == "Browse by topic"
    assert session.label("missing", "fallback") == "fallback"


def test_session_defaults_to_process_cache(http):
    from shelf_browse.core.lcc_cache import get_classification_tree_cache
    from shelf_browse.core.services import FetchService

    first = ShelfBrowseSession(Configuration(), FetchService(session=http))
    second = ShelfBrowseSession(Configuration(), FetchService(session=http))
    assert first.tree_cache is second.tree_cache is get_classification_tree_cache()


def test_url_targets_resolve_literal_then_data_path_then_href():
    document = ViewDocument.from_html(
        '<a class="both" data-path="/p" href="/h">x</a><a class="href" href="/h">y</a><span class="none">z</span>')
    assert resolve_target(as_target("/literal")) == "/literal"
    assert resolve_target(as_target(document.find("both"))) == "/p"
    assert resolve_target(as_target(document.find("href"))) == "/h"
    assert resolve_target(as_target(document.find("none"))) is None
    assert as_target("") is None
    assert isinstance(as_target(LiteralTarget("/x")), LiteralTarget)
    assert isinstance(as_target(document.find("both")), ElementTarget)


def test_names_and_skip_lists_normalize():
    assert normalize_key("showMoreScroll") == "show_more_scroll"
    assert normalize_key("root_id") == "root_node_id"
    assert parse_skip("covers, copyright,,") == ("covers", "copyright")
    assert parse_skip(["covers"]) == ("covers",)
    assert parse_skip(None) == ()
    assert DecorationFeature.parse(" Covers ") is DecorationFeature.COVERS
    assert DecorationFeature.parse("nonsense") is None
