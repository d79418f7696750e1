"""
Configuration loading.

Priority (high → low):
1. environment variables (IPSQR_*)
2. default.yaml at the project root (or an explicit path)
3. built-in defaults below
"""

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from ipsqr.domain.constants import (
    API_BASE_URL,
    API_TIMEOUT_SECONDS,
    DEFAULT_LANGUAGE,
    LANGUAGE_CHANGE_DEBOUNCE_SECONDS,
    NOTIFICATION_MAX_ITEMS,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "default.yaml"

DEFAULTS: dict[str, Any] = {
    "api": {
        "base_url": API_BASE_URL,
        "timeout": API_TIMEOUT_SECONDS,
    },
    "storage": {
        "path": "data/store.json",
        "quota_bytes": 5 * 1024 * 1024,
    },
    "language": {
        "default": DEFAULT_LANGUAGE,
        "debounce_seconds": LANGUAGE_CHANGE_DEBOUNCE_SECONDS,
    },
    "notifications": {
        "max_items": NOTIFICATION_MAX_ITEMS,
    },
}

# env var → (section, key, type)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "IPSQR_API_BASE_URL": ("api", "base_url", str),
    "IPSQR_API_TIMEOUT": ("api", "timeout", float),
    "IPSQR_STORAGE_PATH": ("storage", "path", str),
    "IPSQR_STORAGE_QUOTA_BYTES": ("storage", "quota_bytes", int),
    "IPSQR_DEFAULT_LANGUAGE": ("language", "default", str),
}


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load settings.

    Args:
        config_path: YAML file (None → default.yaml at the project root)

    Returns:
        merged config dict (missing file → defaults)
    """
    config = copy.deepcopy(DEFAULTS)

    path = config_path or DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}
        _deep_merge(config, data)

    for env_name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw:
            config.setdefault(section, {})[key] = cast(raw)

    return config


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Merge override into base in place (nested dicts merged)."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
