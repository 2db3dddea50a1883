"""Utility helpers for loading and storing user settings in YAML."""
from __future__ import annotations

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from config import API_KEY_ENV_VARS, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from languages import DEFAULT_TARGET_LANG

logger = logging.getLogger(__name__)

# Global config file placed next to the main sources.
CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

# Default shape of the settings tree used across the dialog and runtime checks.
DEFAULT_SETTINGS: Dict[str, Any] = {
    "general": {
        "log_level": "INFO",
    },
    "translation": {
        "target_language": DEFAULT_TARGET_LANG,
        "model": DEFAULT_MODEL,
        "api_key": "",
        "temperature": DEFAULT_TEMPERATURE,
        "timeout_sec": None,
    },
    "appearance": {
        "theme": "system",
        "show_bubbles": True,
        "comic_font_family": "",
    },
}


def _merge_dicts(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge two dictionaries without mutating the inputs."""
    merged = deepcopy(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_global_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load global settings from config.yaml (or return defaults)."""
    config_path = path or CONFIG_PATH
    settings = deepcopy(DEFAULT_SETTINGS)
    if not config_path.is_file():
        return settings
    try:
        raw_data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", config_path, exc)
        return settings
    if not isinstance(raw_data, dict):
        logger.warning("Ignoring settings file %s: top level is not a mapping", config_path)
        return settings
    return _merge_dicts(settings, raw_data)


def save_global_settings(settings: Dict[str, Any], path: Optional[Path] = None) -> None:
    """Persist settings into the global config.yaml."""
    config_path = path or CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        yaml.safe_dump(settings, allow_unicode=True, sort_keys=False),
        encoding="utf-8",
    )


def load_effective_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Return the settings tree the application runs with."""
    return load_global_settings(path)


def resolve_api_key(settings: Dict[str, Any]) -> str:
    """Return the service credential from settings, falling back to the environment."""
    translation = settings.get("translation", {}) if isinstance(settings, dict) else {}
    api_key = str(translation.get("api_key", "") or "").strip()
    if api_key:
        return api_key
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""
