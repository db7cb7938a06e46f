from __future__ import annotations

"""
Unit tests for the Config Domain.

Verifies:
1. Default configuration generation.
2. Resilience against missing and corrupted config files.
3. Persistence (Save/Load) without touching real user data.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from dirscope.domain.config import (
    CURRENT_CONFIG_VERSION,
    get_default_config,
    load_config,
    save_config,
)


@pytest.fixture
def config_file(tmp_path: Path):
    """Redirect the module-level CONFIG_FILE into a temporary directory."""
    path = tmp_path / "DirScope" / "config.json"
    with patch("dirscope.domain.config.CONFIG_FILE", str(path)):
        yield path


def test_defaults_shape() -> None:
    conf = get_default_config()
    assert conf["view"] == "flat"
    assert conf["sort_by"] == "own"
    assert conf["follow_symlinks"] is False
    assert conf["tolerate_vanished"] is False
    assert conf["input_path"]


def test_missing_file_returns_defaults(config_file: Path) -> None:
    assert not config_file.exists()
    assert load_config() == get_default_config()


def test_corrupted_file_returns_defaults(config_file: Path) -> None:
    config_file.parent.mkdir(parents=True)
    config_file.write_text("{ not json", encoding="utf-8")
    assert load_config() == get_default_config()

    config_file.write_text(json.dumps(["list"]), encoding="utf-8")
    assert load_config() == get_default_config()


def test_save_then_load_round_trip(config_file: Path) -> None:
    conf = get_default_config()
    conf["view"] = "tree"
    conf["max_workers"] = 6
    conf["unknown"] = "dropped"

    save_config(conf)

    stored = json.loads(config_file.read_text(encoding="utf-8"))
    assert stored["version"] == CURRENT_CONFIG_VERSION
    assert "unknown" not in stored["settings"]

    loaded = load_config()
    assert loaded["view"] == "tree"
    assert loaded["max_workers"] == 6


def test_unknown_stored_keys_are_ignored(config_file: Path) -> None:
    config_file.parent.mkdir(parents=True)
    config_file.write_text(
        json.dumps({"version": "0.9", "settings": {"top": 3, "evil": 1}}),
        encoding="utf-8",
    )
    loaded = load_config()
    assert loaded["top"] == 3
    assert "evil" not in loaded
