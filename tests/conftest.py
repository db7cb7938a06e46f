from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Synthetic filesystem builders shared by the explorer tests.
"""

import errno
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
def _populate(directory: Path, layout: Dict[str, Any]) -> None:
    for name, value in layout.items():
        target = directory / name
        if isinstance(value, dict):
            target.mkdir()
            _populate(target, value)
        else:
            target.write_bytes(b"x" * value)


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """
    Return a factory materializing a nested layout under tmp_path.

    Layout values are either dicts (subdirectories) or ints (file sizes):
        {"a": {"f1": 10}, "b": {"f2": 20}}
    """
    def _make(layout: Dict[str, Any], name: str = "r") -> Path:
        root = tmp_path / name
        root.mkdir()
        _populate(root, layout)
        return root

    return _make


@pytest.fixture
def scenario_root(make_tree: Callable[..., Path]) -> Path:
    """
    The reference scenario.

    Structure:
    /r
      /a
        f1 (10 bytes)
      /b
        f2 (20 bytes)
    """
    return make_tree({"a": {"f1": 10}, "b": {"f2": 20}})


@pytest.fixture
def nested_root(make_tree: Callable[..., Path]) -> Path:
    """A deeper, uneven tree: 9 directories, 8 files."""
    return make_tree({
        "top.bin": 7,
        "docs": {"readme.md": 120, "img": {"a.png": 4000, "b.png": 1500}},
        "src": {
            "main.py": 300,
            "pkg": {"mod.py": 80, "sub": {"deep.py": 11}},
            "empty": {},
        },
        "data": {"blob": 65536, "cache": {}},
    })


@pytest.fixture
def walk_totals() -> Callable[[Path], Dict[str, int]]:
    """Independent reference: directory count and byte total via os.walk."""
    def _walk(root: Path) -> Dict[str, int]:
        directories = 0
        total = 0
        for current, _dirs, files in os.walk(root):
            directories += 1
            for f in files:
                full = os.path.join(current, f)
                if not os.path.islink(full):
                    total += os.path.getsize(full)
        return {"directories": directories, "total": total}

    return _walk


class _VanishedEntry:
    """Directory entry whose file is deleted right after enumeration."""

    def __init__(self, entry: os.DirEntry) -> None:
        self.name = entry.name
        self.path = entry.path

    def is_symlink(self) -> bool:
        return False

    def is_dir(self, *, follow_symlinks: bool = True) -> bool:
        return False

    def is_file(self, *, follow_symlinks: bool = True) -> bool:
        return True

    def stat(self, *, follow_symlinks: bool = True):
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", self.path)


@pytest.fixture
def vanish_on_stat(monkeypatch) -> Callable[..., None]:
    """
    Return a function making the named entries disappear between
    os.scandir enumeration and their stat() call.
    """
    real_scandir = os.scandir

    def _install(*names: str) -> None:
        @contextmanager
        def _scandir(path="."):
            with real_scandir(path) as it:
                yield [_VanishedEntry(e) if e.name in names else e for e in it]

        monkeypatch.setattr(os, "scandir", _scandir)

    return _install
