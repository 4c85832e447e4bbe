"""Central logging configuration for the shelf browse package.

Import and call :func:`setup_logging` at application start-up.
"""

from __future__ import annotations

import logging
import logging.config
import os

from shelf_browse.config import ConfigManager

__all__ = ["setup_logging"]

_DEBUG_DEFAULT_TARGETS = (
    'shelf_browse.ui.coordinators.paging_coordinator',
    'shelf_browse.ui.controllers.shelf_browse_controller',
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("SHELF_BROWSE_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    try:
        logging_config = dict(ConfigManager().get_logging_config())

        if logging_config.get("version"):
            handlers = logging_config.get("handlers") or {}
            if "file" in handlers:
                handlers["file"] = dict(handlers["file"], filename=log_file)
            logging.config.dictConfig(logging_config)
            logging.getLogger("shelf_browse").info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError) as exc:
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - SHELF_BROWSE_DEBUG=true -> DEBUG for paging and lifecycle modules
    - SHELF_BROWSE_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_all = os.environ.get('SHELF_BROWSE_DEBUG', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('SHELF_BROWSE_DEBUG_MODULES', '').strip()
    targets = []
    if debug_all:
        targets.extend(_DEBUG_DEFAULT_TARGETS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        has_debug_handler = any(
            h.level == logging.NOTSET or h.level <= logging.DEBUG for h in logger.handlers
        )
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
