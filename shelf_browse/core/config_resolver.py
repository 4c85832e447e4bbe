"""Layered configuration for the shelf browse widget.

Three layers are merged once per activation, highest precedence last:

1. static defaults packaged with the application (``ConfigManager``),
2. values supplied by the server with the page,
3. same-named query parameters of the current page URL.

Each request then derives an :class:`EffectiveProperties` snapshot from the
merged configuration, the feature status, the URL options and ad-hoc
overrides, so callers never mutate shared state to tweak one request.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from shelf_browse.core.geometry import GeometrySettings, Viewport, compute_geometry
from shelf_browse.core.models import Configuration, EffectiveProperties, normalize_key, parse_skip
from shelf_browse.core.url_utils import parse_url_options

if TYPE_CHECKING:
    from shelf_browse.core.feature_status import FeatureStatus

logger = logging.getLogger(__name__)

__all__ = ["ConfigResolver", "validate_configuration"]

# required flag -> flags that are meaningless without it
_DEPENDENCIES = {
    "show_motion": ("show_progress_bar", "show_tile_scroller"),
    "show_progress_bar": ("show_progress_bar_text",),
}


def validate_configuration(config: Configuration) -> Configuration:
    """Log a warning for each dependent flag whose prerequisite is off."""
    for required, dependents in _DEPENDENCIES.items():
        if getattr(config, required):
            continue
        for dependent in dependents:
            if getattr(config, dependent):
                logger.warning("config %s is false; %s ignored", required, dependent)
    return config


def _normalized(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return {normalize_key(k): v for k, v in (values or {}).items()}


class ConfigResolver:
    """Merge configuration layers and produce per-request property snapshots.

    Parameters
    ----------
    static : Mapping, optional
        Lowest-precedence defaults; ``Configuration`` defaults when omitted.
    server : Mapping, optional
        Values supplied by the server with the page.
    url : str, optional
        Current page URL whose query parameters override both.
    geometry : GeometrySettings, optional
        Constants for the capacity computation.
    """

    def __init__(
        self,
        static: Optional[Mapping[str, Any]] = None,
        server: Optional[Mapping[str, Any]] = None,
        url: Optional[str] = None,
        geometry: Optional[GeometrySettings] = None,
    ) -> None:
        self._static = _normalized(static)
        self._server = _normalized(server)
        self._url = url
        self._url_options: Dict[str, Any] = parse_url_options(url)
        self.geometry = geometry or GeometrySettings()
        self._config: Optional[Configuration] = None

    @classmethod
    def from_config_manager(cls, server: Optional[Mapping[str, Any]] = None,
                            url: Optional[str] = None) -> "ConfigResolver":
        from shelf_browse.config import ConfigManager

        manager = ConfigManager()
        return cls(
            static=manager.get_feature_defaults(),
            server=server,
            url=url,
            geometry=GeometrySettings.from_mapping(manager.get_geometry()),
        )

    # ------------------------------------------------------------ properties
    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def url_options(self) -> Dict[str, Any]:
        """Query options of the current URL with ``skip`` normalized to a list."""
        options = dict(self._url_options)
        if "skip" in options:
            options["skip"] = list(parse_skip(options["skip"]))
        return options

    @property
    def config(self) -> Configuration:
        if self._config is None:
            self._config = self.resolve()
        return self._config

    # -------------------------------------------------------------- merging
    def resolve(self) -> Configuration:
        """Merge static, server and URL layers into a validated Configuration."""
        config = Configuration()
        for layer in (self._static, self._server, _normalized(self._url_options)):
            config = config.with_values(layer)
        self._config = validate_configuration(config)
        logger.debug("Resolved configuration: %s", self._config.as_dict())
        return self._config

    def update_url(self, url: Optional[str]) -> Configuration:
        """Re-read query options from *url* and re-resolve the configuration."""
        self._url = url
        self._url_options = parse_url_options(url)
        return self.resolve()

    def effective_properties(
        self,
        status: Optional["FeatureStatus"] = None,
        viewport: Optional[Viewport] = None,
        **overrides: Any,
    ) -> EffectiveProperties:
        """Return a fresh snapshot; *overrides* apply to this call only."""
        config = self.config
        options: Dict[str, Any] = {}

        popup = None
        skip: tuple = ()
        if status is not None:
            popup = status.popup
            skip = tuple(sorted(f.value for f in status.skip))

        for layer in (self.url_options, overrides):
            for key, value in layer.items():
                options[key] = value
                if key == "popup":
                    popup = value
                elif key == "skip":
                    skip = parse_skip(value)

        orientation = options.get("orientation", config.orientation)
        horizontal = orientation != "vertical"
        extra_metadata = options.get("extra_metadata")

        values: Dict[str, Any] = dict(
            config=config,
            popup=popup,
            skip=skip,
            extra_metadata=extra_metadata,
            horizontal=horizontal,
            options=options,
        )
        if viewport is not None:
            shelf = compute_geometry(self.geometry, viewport, popup=bool(popup), horizontal=horizontal)
            values.update(
                items_across=shelf.items_across,
                items_down=shelf.items_down,
                popup_width=shelf.popup_width,
                popup_height=shelf.popup_height,
            )
        return EffectiveProperties(**values)
