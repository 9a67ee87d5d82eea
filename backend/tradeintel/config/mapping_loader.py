"""
Utilities for loading column alias / category configuration.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "column_mappings.yaml"
DEFAULT_CATEGORIES = ["fruits", "vegetables"]


def _config_path() -> Path:
    override = os.getenv("COLUMN_MAPPINGS_PATH")
    return Path(override) if override else DEFAULT_CONFIG_PATH


@lru_cache()
def load_mapping_config() -> Dict[str, Any]:
    config_path = _config_path()
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_categories() -> List[str]:
    """Category tags an import may be filed under."""
    categories = load_mapping_config().get("categories") or DEFAULT_CATEGORIES
    return [str(c).strip().lower() for c in categories if str(c).strip()]


def get_alias_overrides() -> Dict[str, List[str]]:
    """Site-specific header aliases keyed by canonical field name."""
    aliases = load_mapping_config().get("aliases") or {}
    overrides: Dict[str, List[str]] = {}
    for field_name, values in aliases.items():
        if not values:
            continue
        if isinstance(values, str):
            values = [values]
        overrides[str(field_name)] = [str(v) for v in values]
    return overrides
