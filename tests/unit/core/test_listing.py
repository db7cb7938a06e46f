from __future__ import annotations

"""
Unit tests for the Directory Listing primitives.

Permission failures are injected by patching os.scandir so the suite
behaves the same when executed as root.
"""

import errno
import os
from pathlib import Path

import pytest

from dirscope.core import listing
from dirscope.core.listing import list_entries, list_files, list_subdirectories
from dirscope.domain.errors import PathVanishedError, ScanIOError
from dirscope.domain.tree_models import FileEntry


def _failing_scandir(target: str, exc: OSError):
    real_scandir = os.scandir

    def _scandir(path="."):
        if os.fspath(path) == target:
            raise exc
        return real_scandir(path)
    return _scandir


def test_lists_only_immediate_children(nested_root: Path) -> None:
    subdirs = list_subdirectories(str(nested_root))
    assert subdirs == [
        os.path.join(str(nested_root), "data"),
        os.path.join(str(nested_root), "docs"),
        os.path.join(str(nested_root), "src"),
    ]
    assert list_files(str(nested_root)) == [FileEntry(name="top.bin", size=7)]


def test_file_sizes_are_reported(make_tree) -> None:
    root = make_tree({"b.dat": 2048, "a.dat": 0, "sub": {"hidden": 99}})
    listing_result = list_entries(str(root))

    assert listing_result.access_denied is False
    assert listing_result.files == (FileEntry("a.dat", 0), FileEntry("b.dat", 2048))
    assert listing_result.subdirectories == (os.path.join(str(root), "sub"),)


def test_access_denied_returns_empty(scenario_root: Path, monkeypatch) -> None:
    target = str(scenario_root)
    monkeypatch.setattr(
        listing.os, "scandir",
        _failing_scandir(target, PermissionError(errno.EACCES, "Permission denied")),
    )

    assert list_subdirectories(target) == []
    assert list_files(target) == []
    result = list_entries(target)
    assert result.access_denied is True
    assert result.subdirectories == () and result.files == ()


def test_missing_path_raises_vanished(tmp_path: Path) -> None:
    with pytest.raises(PathVanishedError) as exc_info:
        list_entries(str(tmp_path / "gone"))
    assert exc_info.value.path == str(tmp_path / "gone")
    assert isinstance(exc_info.value, OSError)


def test_other_io_error_is_not_absorbed(scenario_root: Path, monkeypatch) -> None:
    target = str(scenario_root)
    monkeypatch.setattr(
        listing.os, "scandir",
        _failing_scandir(target, OSError(errno.EIO, "Input/output error")),
    )

    with pytest.raises(ScanIOError) as exc_info:
        list_subdirectories(target)
    assert not isinstance(exc_info.value, PathVanishedError)
    assert exc_info.value.cause.errno == errno.EIO


def test_symlinks_skipped_unless_followed(make_tree) -> None:
    root = make_tree({"real": {"f": 4}, "file.txt": 6})
    try:
        os.symlink(root / "real", root / "link_dir", target_is_directory=True)
        os.symlink(root / "file.txt", root / "link_file")
    except (OSError, NotImplementedError) as e:
        pytest.skip(f"Symbolic links unavailable: {e}")

    plain = list_entries(str(root))
    assert [os.path.basename(p) for p in plain.subdirectories] == ["real"]
    assert [f.name for f in plain.files] == ["file.txt"]

    followed = list_entries(str(root), follow_symlinks=True)
    assert [os.path.basename(p) for p in followed.subdirectories] == ["link_dir", "real"]
    assert [f.name for f in followed.files] == ["file.txt", "link_file"]


def test_dangling_symlink_ignored_when_following(make_tree) -> None:
    root = make_tree({"f": 1})
    try:
        os.symlink(root / "missing", root / "dangling")
    except (OSError, NotImplementedError) as e:
        pytest.skip(f"Symbolic links unavailable: {e}")

    result = list_entries(str(root), follow_symlinks=True)
    assert [f.name for f in result.files] == ["f"]
    assert result.subdirectories == ()


def test_listing_is_stateless(make_tree) -> None:
    root = make_tree({"one": {}})
    assert len(list_subdirectories(str(root))) == 1

    (root / "two").mkdir()
    assert len(list_subdirectories(str(root))) == 2


def test_entry_vanishing_before_stat_raises_for_that_entry(make_tree, vanish_on_stat) -> None:
    root = make_tree({"gone": 5, "keep": 7})
    vanish_on_stat("gone")

    with pytest.raises(PathVanishedError) as exc_info:
        list_entries(str(root))
    assert exc_info.value.path == os.path.join(str(root), "gone")


def test_entry_vanishing_before_stat_skipped_when_tolerated(make_tree, vanish_on_stat) -> None:
    root = make_tree({"gone": 5, "keep": 7, "sub": {}})
    vanish_on_stat("gone")

    result = list_entries(str(root), tolerate_vanished=True)
    assert result.access_denied is False
    assert result.files == (FileEntry("keep", 7),)
    assert result.subdirectories == (os.path.join(str(root), "sub"),)
