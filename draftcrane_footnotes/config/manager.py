from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the declarative settings of the footnote engine (id
prefix, history depth, editor-only markup to strip on export) and the logging
setup. It loads YAML files packaged with *draftcrane_footnotes* and merges them
with user overrides.

User overrides live in ``$DRAFTCRANE_CONFIG_DIR`` when set, otherwise in
``~/.draftcrane/`` (``%LOCALAPPDATA%\\DraftCrane\\config`` on Windows).
"""

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]

# Used when a key is absent from both packaged and user files.
_FOOTNOTE_DEFAULTS: Dict[str, Any] = {
    "id_prefix": "fn",
    "max_history": 100,
    "max_hook_rounds": 4,
    "editor_only_attributes": ["contenteditable", "draggable", "spellcheck"],
    "editor_only_class_prefixes": ["ProseMirror"],
}


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("DRAFTCRANE_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "DraftCrane" / "config"
        return Path.home() / "AppData" / "Local" / "DraftCrane" / "config"
    return Path.home() / ".draftcrane"


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "footnotes": "footnotes.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next call reloads from disk."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_footnote_config(self) -> Dict[str, Any]:
        merged = dict(_FOOTNOTE_DEFAULTS)
        merged.update(self._data.get("footnotes", {}))
        return merged

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        import yaml

        startup_summary = []
        user_config_dir = _get_user_config_dir()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                text = pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
                merged_cfg.update(yaml.safe_load(text) or {})
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    merged_cfg.update(user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))
