"""Core layer of shelf browse: models, configuration resolution, session state."""

from .exceptions import ConfigurationError, MissingElementError, ShelfBrowseError, TransportError  # noqa: F401
from .feature_status import FeatureStatus, ShelfBrowseSession  # noqa: F401
from .lcc_cache import ClassificationTreeCache, get_classification_tree_cache  # noqa: F401
from .models import Configuration, DecorationFeature, EffectiveProperties, NavigationAction  # noqa: F401

__all__ = [
    "ClassificationTreeCache",
    "Configuration",
    "ConfigurationError",
    "DecorationFeature",
    "EffectiveProperties",
    "FeatureStatus",
    "MissingElementError",
    "NavigationAction",
    "ShelfBrowseError",
    "ShelfBrowseSession",
    "TransportError",
    "get_classification_tree_cache",
]
