from __future__ import annotations

"""
Configuration Validation Service.

Gatekeeper between untrusted configuration sources (JSON file, CLI flags)
and the explorer. Coerces types, clamps numeric limits and injects defaults
so the rest of the application can trust every key.
"""

import logging
from typing import Any, Dict, List, Sequence, Tuple

from dirscope.domain.config import SORT_MODES, VIEW_MODES, get_default_config

logger = logging.getLogger(__name__)

MAX_WORKERS_LIMIT = 256


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize the provided configuration dictionary.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raises exceptions on invalid values instead of
                falling back.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized configuration and
                                          the warnings produced on the way.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update({k: v for k, v in config.items() if k in defaults})

    bool_fields = ["follow_symlinks", "tolerate_vanished", "show_files", "color", "save_log"]

    int_fields = {
        "max_workers": (0, MAX_WORKERS_LIMIT),
        "top": (0, None),
        "max_depth": (0, None),
    }

    choice_fields = {
        "view": VIEW_MODES,
        "sort_by": SORT_MODES,
    }

    merged["input_path"] = _as_str(
        merged.get("input_path"), defaults["input_path"], "input_path", warnings, strict
    )

    for field in bool_fields:
        merged[field] = _as_bool(merged.get(field), defaults[field], field, warnings, strict)

    for field, (low, high) in int_fields.items():
        merged[field] = _as_int(
            merged.get(field), defaults[field], low, high, field, warnings, strict
        )

    for field, choices in choice_fields.items():
        merged[field] = _as_choice(
            merged.get(field), defaults[field], choices, field, warnings, strict
        )

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        v = value.strip()
        return v if v else fallback

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    """Coerce various input types into native booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return fallback

    if not strict:
        if isinstance(value, (int, float)) and value in (0, 1):
            warnings.append(f"Field '{field}' converted from number {value} to bool.")
            return bool(value)
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("true", "1", "yes", "y", "on"):
                warnings.append(f"Field '{field}' converted from '{value}' to True.")
                return True
            if s in ("false", "0", "no", "n", "off"):
                warnings.append(f"Field '{field}' converted from '{value}' to False.")
                return False

    msg = f"Invalid field '{field}': expected bool, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_int(
        value: Any,
        fallback: int,
        low: int,
        high: Any,
        field: str,
        warnings: List[str],
        strict: bool,
) -> int:
    """Coerce to int and clamp into [low, high]."""
    if value is None:
        return fallback

    number: Any = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and not strict:
        try:
            number = int(value.strip())
            warnings.append(f"Field '{field}' converted from '{value}' to {number}.")
        except ValueError:
            number = None

    if number is None:
        msg = f"Invalid field '{field}': expected int, received {type(value).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using fallback.")
        return fallback

    if number < low or (high is not None and number > high):
        bound = f"[{low}, {high}]" if high is not None else f">= {low}"
        msg = f"Field '{field}' out of range {bound}: {number}."
        if strict:
            raise ValueError(msg)
        number = max(low, number) if high is None else min(max(low, number), high)
        warnings.append(f"{msg} Clamped to {number}.")
    return number


def _as_choice(
        value: Any,
        fallback: str,
        choices: Sequence[str],
        field: str,
        warnings: List[str],
        strict: bool,
) -> str:
    """Accept only one of the allowed identifiers (case-insensitive)."""
    if value is None:
        return fallback
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()

    msg = f"Invalid field '{field}': expected one of {list(choices)}, received {value!r}."
    if strict:
        raise ValueError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback
