"""Configuration loading and access helpers.

This module centralises the static, declarative defaults of the shelf browse
widget (feature flags, geometry constants, decoration defaults, labels) and
the logging configuration.  It loads YAML files packaged with
*shelf_browse* and merges them with user overrides.

On Windows: ``%LOCALAPPDATA%\\ShelfBrowse\\config\\*.yml``
On Unix: ``~/.shelf_browse/*.yml``

``SHELF_BROWSE_CONFIG_DIR`` replaces the user directory when set.
"""

from __future__ import annotations

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

from shelf_browse.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("SHELF_BROWSE_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "ShelfBrowse" / "config"
        return Path.home() / "AppData" / "Local" / "ShelfBrowse" / "config"
    return Path.home() / ".shelf_browse"


def _read_packaged(filename: str) -> str:
    return pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")


def _ensure_user_configs_exist(user_config_dir: Path, default_filenames: Dict[str, str]) -> None:
    """Copy default config files to user directory if they don't exist."""
    try:
        user_config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Could not create user config directory %s: %s", user_config_dir, e)
        return

    for filename in default_filenames.values():
        user_config_path = user_config_dir / filename
        if user_config_path.exists():
            continue
        try:
            user_config_path.write_text(_read_packaged(filename), encoding='utf-8')
            logger.info("Created user config: %s", user_config_path)
        except (FileNotFoundError, OSError) as e:
            logger.warning("Could not copy default config %s: %s", filename, e)


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "shelf_browse": "shelf_browse.yml",
        "logging": "logging.yml",
    }

    def __init__(self, *, copy_user_defaults: bool = True) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._copy_user_defaults = copy_user_defaults
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_feature_defaults(self) -> Dict[str, Any]:
        return dict(self._section("shelf_browse").get("feature") or {})

    def get_geometry(self) -> Dict[str, Any]:
        return dict(self._section("shelf_browse").get("geometry") or {})

    def get_decoration_defaults(self) -> Dict[str, bool]:
        return dict(self._section("shelf_browse").get("decorations") or {})

    def get_labels(self) -> Dict[str, str]:
        return dict(self._section("shelf_browse").get("labels") or {})

    def get_transport(self) -> Dict[str, Any]:
        return dict(self._section("shelf_browse").get("transport") or {})

    def get_tree_state(self) -> Dict[str, Any]:
        return dict(self._section("shelf_browse").get("tree_state") or {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    @property
    def user_config_dir(self) -> Path:
        return _get_user_config_dir()

    @classmethod
    def reset(cls) -> None:
        """Forget the process instance so the next call reloads from disk."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _section(self, key: str) -> Dict[str, Any]:
        return self._data.get(key, {})

    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []

        user_config_dir = _get_user_config_dir()
        if self._copy_user_defaults:
            _ensure_user_configs_exist(user_config_dir, self._DEFAULT_FILENAMES)

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                packaged_data = yaml.safe_load(_read_packaged(filename)) or {}
                merged_cfg.update(packaged_data)
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides, one level deep per section
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    _merge_sections(merged_cfg, _read_user_config(user_path))
                    if status == "loaded":
                        status = "loaded+overrides"
                except ConfigurationError as exc:
                    logger.error("%s", exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))


def _read_user_config(path: Path) -> Dict[str, Any]:
    """Parse a user override file; it must hold a mapping of sections."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not parse user config {path}: {exc}", "load_config", exc) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Could not parse user config {path}: expected a mapping, got "
                                 f"{type(data).__name__}", "load_config")
    return data


def _merge_sections(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    for name, value in overrides.items():
        current = target.get(name)
        if isinstance(current, dict) and isinstance(value, dict):
            merged = dict(current)
            merged.update(value)
            target[name] = merged
        else:
            target[name] = value
