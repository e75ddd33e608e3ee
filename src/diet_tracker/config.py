"""Tracker settings loading with defaults and CLI override merging."""

from __future__ import annotations

import copy
from pathlib import Path

import yaml

DEFAULT_DATA_DIR = Path.home() / ".diet-tracker"
CONFIG_FILENAME = "config.yaml"

DEFAULTS = {
    "daily_view": {
        # Meals at or above this family completion count as done
        "complete_threshold": 80,
    },
    "grocery": {
        "range_days": 7,
        "sort_by": "category",
        "show_completed": False,
    },
    "feedback": {
        "top_cravings": 3,
        "top_meals": 3,
        "max_suggestions": 5,
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(data_dir: Path) -> dict:
    """Load tracker settings from config.yaml in the data dir, falling back to defaults."""
    config_path = data_dir / CONFIG_FILENAME

    if config_path.exists():
        with open(config_path) as f:
            user_config = yaml.safe_load(f) or {}
        return deep_merge(copy.deepcopy(DEFAULTS), user_config)

    return copy.deepcopy(DEFAULTS)


def apply_cli_overrides(config: dict, **overrides: object) -> dict:
    """Apply CLI argument overrides to config.

    Supports flat keys that map into nested config:
      sort_by -> grocery.sort_by
      show_completed -> grocery.show_completed
      days -> grocery.range_days
      threshold -> daily_view.complete_threshold
    """
    if overrides.get("sort_by") is not None:
        config["grocery"]["sort_by"] = overrides["sort_by"]
    if overrides.get("show_completed"):
        config["grocery"]["show_completed"] = True
    if overrides.get("days") is not None:
        config["grocery"]["range_days"] = overrides["days"]
    if overrides.get("threshold") is not None:
        config["daily_view"]["complete_threshold"] = overrides["threshold"]

    return config
