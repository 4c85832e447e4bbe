"""Core data models for the virtual shelf browse widget.

Plain dataclasses and enumerations shared by the resolver, the session and
the UI coordinators.  Nothing here touches the network or the view layer.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, Literal, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:
    from shelf_browse.ui.view import ElementHandle

ScrollMode = Literal["top", "bottom", "toggle"]
Motion = Literal["left", "right"]
SCROLL_MODES: Tuple[str, ...] = ("top", "bottom", "toggle")


class NavigationAction(enum.Enum):
    """Semantic navigation actions produced by the keyboard state machine."""

    IGNORED = 0
    FOCUS_FIRST = 1
    FOCUS_LAST = 2
    FOCUS_FWD = 3
    FOCUS_REV = 4
    PAGE_HOME = 5
    PAGE_FORWARD = 6
    PAGE_REVERSE = 7


class DecorationFeature(str, enum.Enum):
    """Page-decoration features that may be skipped by name."""

    ANALYTICS = "analytics"
    AVAILABILITY = "availability"
    BOOKPLATES = "bookplates"
    COPYRIGHT = "copyright"
    COVERS = "covers"
    GOOGLE_PREVIEW = "google_preview"
    STARRED_ITEMS = "starred_items"

    @classmethod
    def parse(cls, name: str) -> Optional["DecorationFeature"]:
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            return None


class OverlayKind(str, enum.Enum):
    """Identities recorded in ``FeatureStatus.open_overlays``."""

    HELP = "help"
    CLASSIFICATION_TREE = "classification-tree"
    REQUEST_DIALOG = "request-dialog"


# --------------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------------

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Spellings used by the server and by older query strings.
FIELD_ALIASES: Dict[str, str] = {
    "lcc_tree_path": "classification_tree_path",
    "root_id": "root_node_id",
    "shelfkey_attr": "shelf_key_attribute",
    "cover_image_retry": "cover_image_retry_ms",
}


def normalize_key(name: str) -> str:
    """Map camelCase or legacy option names onto Configuration field names."""
    key = _CAMEL_RE.sub("_", str(name)).lower()
    return FIELD_ALIASES.get(key, key)


@dataclass(frozen=True)
class Configuration:
    """Immutable-after-merge configuration of one widget activation."""

    feature_path: str = "/shelf_browse"
    classification_tree_path: str = "/shelf_browse/hierarchy.json"
    root_node_id: str = "ROOT"
    shelf_key_attribute: str = "data-shelfkey"
    orientation: str = "horizontal"
    details_scroll: str = "top"
    cover_image_retry_ms: int = 4000
    show_motion: bool = True
    show_tile_scroller: bool = False
    show_progress_bar: bool = True
    show_progress_bar_text: bool = False
    show_more_scroll: bool = False

    @property
    def horizontal(self) -> bool:
        return self.orientation != "vertical"

    @classmethod
    def field_names(cls) -> FrozenSet[str]:
        return frozenset(f.name for f in fields(cls))

    def with_values(self, values: Mapping[str, Any]) -> "Configuration":
        """Return a copy with same-named values applied; unknown names are ignored."""
        known = self.field_names()
        changes: Dict[str, Any] = {}
        for name, value in (values or {}).items():
            key = normalize_key(name)
            if key in known and value is not None:
                changes[key] = _coerce_field(self, key, value)
        return replace(self, **changes) if changes else self

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce_field(config: Configuration, key: str, value: Any) -> Any:
    current = getattr(config, key)
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)
    if isinstance(current, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            return current
    return str(value)


# --------------------------------------------------------------------------
# Effective properties
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class EffectiveProperties:
    """Snapshot of configuration, status, URL options and derived geometry.

    A fresh instance is produced for every request so callers can apply
    ad-hoc overrides without corrupting shared state.
    """

    config: Configuration
    popup: Optional[bool] = None
    skip: Tuple[str, ...] = ()
    extra_metadata: Optional[Any] = None
    horizontal: bool = True
    items_across: int = 1
    items_down: int = 1
    popup_width: str = "99%"
    popup_height: str = "99%"
    options: Mapping[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        if name in self.options:
            return self.options[name]
        if hasattr(self.config, name):
            return getattr(self.config, name)
        return default


# --------------------------------------------------------------------------
# URL targets
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class LiteralTarget:
    url: str


@dataclass(frozen=True)
class ElementTarget:
    element: "ElementHandle"


UrlTarget = Union[LiteralTarget, ElementTarget]


def as_target(value: Union[str, "ElementHandle", UrlTarget, None]) -> Optional[UrlTarget]:
    """Wrap a raw string or element handle in the matching target variant."""
    if value is None or isinstance(value, (LiteralTarget, ElementTarget)):
        return value
    if isinstance(value, str):
        return LiteralTarget(value) if value else None
    return ElementTarget(value)


def resolve_target(target: Optional[UrlTarget]) -> Optional[str]:
    """Resolve a target into a URL: the literal, or ``data-path`` then ``href``."""
    if target is None:
        return None
    if isinstance(target, LiteralTarget):
        return target.url or None
    element = target.element
    return element.get("data-path") or element.get("href") or None


def parse_skip(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    """Normalize a comma-joined string or sequence into a tuple of names."""
    if value is None or value is False:
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = [str(v) for v in value]
    return tuple(p.strip() for p in parts if p and p.strip())
