from __future__ import annotations

"""
Unit tests for the Terminal Renderer.

Line builders are checked through their plain text; the console itself is
exercised with a recording rich Console.
"""

import sys

import pytest
from rich.console import Console

from dirscope.core.aggregation import compute_sizes
from dirscope.core.report import rank_directories
from dirscope.domain.tree_models import DirectoryNode, FileEntry, NodeStatus, degraded_node
from dirscope.interface.cli.render import (
    flat_lines,
    format_bytes,
    print_lines,
    scan_progress,
    size_bar,
    summary_lines,
    tree_lines,
)


@pytest.fixture
def tree() -> DirectoryNode:
    a = DirectoryNode("/r/a", files=(FileEntry("f1", 10),))
    b = DirectoryNode("/r/b", children=(DirectoryNode("/r/b/c", files=(FileEntry("deep", 10),)),),
                      files=(FileEntry("f2", 20),))
    locked = degraded_node("/r/locked", NodeStatus.ACCESS_DENIED)
    return DirectoryNode("/r", children=(a, b, locked))


@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (1023, "1023 B"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (1024 ** 2, "1 MB"),
    (int(2.25 * 1024 ** 3), "2.2 GB"),
    (5 * 1024 ** 5, "5120 TB"),
    (-4, "0 B"),
])
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


def test_size_bar_proportions():
    assert size_bar(50, 100, 10) == "█████░░░░░"
    assert size_bar(0, 0, 4) == "░░░░"
    assert size_bar(10, 10, 3) == "███"
    assert size_bar(1, 1, 0) == ""


def test_flat_lines_layout(tree):
    index = compute_sizes(tree)
    rows = rank_directories(tree, index)
    plain = [line.plain for line in flat_lines(rows)]

    assert plain[0] == "┌─ /r/b  (20 B / total 30 B)"
    assert plain[1] == "│  ├─ f2 (20 B)"
    assert plain[2].startswith("└───")
    assert any("/r/locked" in p and "[access denied]" in p for p in plain)


def test_flat_lines_without_files(tree):
    index = compute_sizes(tree)
    plain = [line.plain for line in flat_lines(rank_directories(tree, index), show_files=False)]
    assert not any("├─" in p for p in plain)
    assert len(plain) == 2 * 5


def test_tree_lines_connectors_and_bars(tree):
    index = compute_sizes(tree)
    plain = [line.plain for line in tree_lines(tree, index, bar_width=4)]

    assert plain[0] == "████ /r 40 B"
    assert plain[1] == "├── █░░░ a 10 B"
    assert plain[2] == "├── ███░ b 30 B"
    assert plain[3] == "│   └── █░░░ c 10 B"
    assert plain[4] == "└── ░░░░ locked 0 B [access denied]"


def test_tree_lines_depth_and_files(tree):
    index = compute_sizes(tree)
    shallow = [line.plain for line in tree_lines(tree, index, max_depth=1, bar_width=0)]
    assert shallow == ["/r 40 B", "├── a 10 B", "├── b 30 B", "└── locked 0 B [access denied]"]

    with_files = [line.plain for line in tree_lines(tree, index, show_files=True, bar_width=0)]
    assert "│   └── f1 (10 B)" in with_files


def test_summary_mentions_undercount(tree):
    plain = [line.plain for line in summary_lines(compute_sizes(tree))]
    assert plain[0] == "Total: 40 B in 5 directories"
    assert "1 directory could not be read" in plain[1]


def test_print_lines_and_disabled_progress(tree):
    console = Console(record=True, width=120, color_system=None)
    print_lines(console, summary_lines(compute_sizes(tree)))
    assert "Total: 40 B" in console.export_text()

    with scan_progress(console, "/r", enabled=False) as callback:
        assert callback is None


def test_summary_notes_revisited_without_undercount():
    real = DirectoryNode("/r/z", files=(FileEntry("f", 8),))
    root = DirectoryNode("/r", children=(degraded_node("/r/link", NodeStatus.REVISITED), real))

    plain = [line.plain for line in summary_lines(compute_sizes(root))]
    assert plain[0] == "Total: 8 B in 3 directories"
    assert not any("could not be read" in p for p in plain)
    assert plain[1] == "Note: 1 linked directory already counted elsewhere was not counted again."


def test_tree_lines_deeper_than_recursion_limit():
    depth = sys.getrecursionlimit() + 200
    node = DirectoryNode("/deep/leaf", files=(FileEntry("f", 1),))
    for i in range(depth):
        node = DirectoryNode(f"/deep/{i}", children=(node,))

    plain = [line.plain for line in tree_lines(node, compute_sizes(node), bar_width=0)]
    assert len(plain) == depth + 1
    assert plain[-1].endswith("└── leaf 1 B")
