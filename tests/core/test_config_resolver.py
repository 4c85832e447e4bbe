import logging

import pytest

from shelf_browse.core.config_resolver import ConfigResolver, validate_configuration
from shelf_browse.core.feature_status import FeatureStatus
from shelf_browse.core.geometry import GeometrySettings, Viewport, compute_geometry
from shelf_browse.core.models import Configuration, DecorationFeature


def test_layers_apply_in_precedence_order():
    resolver = ConfigResolver(
        static={"orientation": "vertical", "details_scroll": "bottom", "show_motion": False},
        server={"detailsScroll": "toggle", "lccTreePath": "/server/tree.json"},
        url="/shelf_browse?start=K7&show_motion=true",
    )
    config = resolver.config
    assert config.orientation == "vertical"
    assert config.details_scroll == "toggle"
    assert config.classification_tree_path == "/server/tree.json"
    assert config.show_motion is True


def test_unknown_names_are_ignored_and_types_coerced():
    resolver = ConfigResolver(server={"no_such_option": 1, "cover_image_retry": "2500",
                                      "show_progress_bar": "false"})
    config = resolver.config
    assert config.cover_image_retry_ms == 2500
    assert config.show_progress_bar is False
    assert not hasattr(config, "no_such_option")


def test_dependent_flags_warn_when_prerequisite_is_off(caplog):
    caplog.set_level(logging.WARNING, logger="shelf_browse.core.config_resolver")
    validate_configuration(Configuration(show_motion=False, show_tile_scroller=True))
    assert "show_tile_scroller ignored" in caplog.text


def test_update_url_re_resolves():
    resolver = ConfigResolver(url="/shelf_browse")
    assert resolver.config.orientation == "horizontal"
    config = resolver.update_url("/shelf_browse?orientation=vertical&skip=covers,copyright")
    assert config.orientation == "vertical"
    assert resolver.url_options["skip"] == ["covers", "copyright"]


def test_effective_properties_overrides_do_not_leak():
    resolver = ConfigResolver(url="/shelf_browse?start=K7")
    status = FeatureStatus(popup=False, skip={DecorationFeature.COVERS})

    first = resolver.effective_properties(status, popup=True, skip="analytics", extra_metadata="x")
    assert first.popup is True
    assert first.skip == ("analytics",)
    assert first.extra_metadata == "x"

    second = resolver.effective_properties(status)
    assert second.popup is False
    assert second.skip == ("covers",)
    assert second.extra_metadata is None
    assert status.popup is False


def test_effective_properties_capacity_for_page_mode():
    resolver = ConfigResolver()
    properties = resolver.effective_properties(FeatureStatus(popup=False), Viewport(width=1024, height=768))
    # (1024 - 116) / 119.2
    assert properties.items_across == 7
    assert properties.items_down == 1
    assert properties.get("orientation") == "horizontal"


def test_popup_geometry_reserves_the_modal_border():
    settings = GeometrySettings()
    page = compute_geometry(settings, Viewport(width=1024, height=768), popup=False, horizontal=True)
    popup = compute_geometry(settings, Viewport(width=1024, height=768), popup=True, horizontal=True)
    assert popup.reserved_width == page.reserved_width + 60
    assert popup.items_across == 7
    assert popup.popup_width == f"{119.2 * 7 + 176:g}px"
    assert popup.popup_height == "99%"


def test_small_screens_get_half_size_tiles():
    settings = GeometrySettings()
    small = compute_geometry(settings, Viewport(width=600, height=600, screen_height=600),
                             popup=False, horizontal=True)
    assert small.item_width == pytest.approx(59.6)
    assert small.items_across == 9


def test_vertical_orientation_counts_rows():
    settings = GeometrySettings()
    shelf = compute_geometry(settings, Viewport(width=800, height=1000), popup=False, horizontal=False)
    assert shelf.items_across == 1
    # (1000 - 195) / 195
    assert shelf.items_down == 4


def test_scrollbar_width_only_counts_when_it_reserves_space():
    settings = GeometrySettings()
    reserving = compute_geometry(settings, Viewport(width=600, height=800, scroll_width=15),
                                 popup=False, horizontal=True)
    overlaid = compute_geometry(settings, Viewport(width=600, height=800, scroll_width=15,
                                                   scrollbars_reserve_space=False),
                                popup=False, horizontal=True)
    assert reserving.items_across == 3
    assert overlaid.items_across == 4


def test_geometry_settings_from_nested_mapping():
    settings = GeometrySettings.from_mapping({
        "item_width": 100,
        "scale": {"small": 400, "medium": 700, "large": 900},
        "scale_factor": {"small": 0.3},
        "unknown": 1,
    })
    assert settings.item_width == 100
    assert settings.scale_small == 400
    assert settings.scale_large == 900
    assert settings.scale_factor_small == 0.3
    assert settings.scale_factor_large == 0.6
