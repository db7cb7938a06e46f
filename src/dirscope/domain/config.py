from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of user preferences as JSON in the user data
directory, with default fallback. Scan results themselves are never
persisted.
"""

import json
import logging
import os
from typing import Any, Dict

from dirscope.infra.fs import get_home_dir, get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE = os.path.join(get_user_data_dir(), "config.json")
CURRENT_CONFIG_VERSION = "1.0.0"

VIEW_MODES = ("flat", "tree")
SORT_MODES = ("own", "total")


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Exploration
        "input_path": get_home_dir(),
        "max_workers": 0,  # 0 = sized from the CPU count
        "follow_symlinks": False,
        "tolerate_vanished": False,

        # Reporting
        "view": "flat",
        "sort_by": "own",
        "top": 0,  # 0 = every directory
        "max_depth": 0,  # 0 = unlimited (tree view)
        "show_files": True,
        "color": True,

        # Diagnostics
        "save_log": False,
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """
    Load the stored preferences merged over the defaults.

    A missing or unreadable file yields the defaults. Unknown keys are
    dropped so stale files cannot inject settings.

    Returns:
        Dict[str, Any]: The merged configuration.
    """
    config = get_default_config()

    if not os.path.exists(CONFIG_FILE):
        logger.debug("Config file not found. Returning defaults.")
        return config

    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Resetting to defaults.")
        return config

    settings = data.get("settings", {})
    if not isinstance(settings, dict):
        logger.warning("Config file has no usable 'settings' section. Using defaults.")
        return config

    for key, value in settings.items():
        if key in config:
            config[key] = value
    return config


def save_config(config: Dict[str, Any]) -> None:
    """
    Persist preferences to disk.

    Args:
        config: The configuration dictionary to save.
    """
    known = get_default_config()
    state = {
        "version": CURRENT_CONFIG_VERSION,
        "settings": {k: v for k, v in config.items() if k in known},
    }
    try:
        os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(state, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {CONFIG_FILE}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")
