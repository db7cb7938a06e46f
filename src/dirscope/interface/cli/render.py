from __future__ import annotations

"""
Terminal Renderer.

Presentation layer for scan results: byte-unit formatting, the flat listing
sorted by size, the proportional tree view and the live progress spinner.
Line builders return rich Text objects so they can be inspected as plain
text independently of the console they are printed on.
"""

import sys
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.text import Text

from dirscope.core.aggregation import SizeIndex
from dirscope.core.report import DirectoryReport
from dirscope.domain.tree_models import DirectoryNode, NodeStatus

_UNITS = ("B", "KB", "MB", "GB", "TB")
_SEPARATOR = "└" + "─" * 27
DEFAULT_BAR_WIDTH = 20

_STATUS_LABELS = {
    NodeStatus.ACCESS_DENIED: "access denied",
    NodeStatus.VANISHED: "vanished during scan",
    NodeStatus.REVISITED: "already visited",
}

# -----------------------------------------------------------------------------
# CONSOLE
# -----------------------------------------------------------------------------

def make_console(*, color: bool = True, stderr: bool = False) -> Console:
    """
    Build the output console.

    Redirected output gets a wide, unstyled console so no ANSI codes or
    wrapped lines end up in files.
    """
    stream = sys.stderr if stderr else sys.stdout
    if color and stream.isatty():
        return Console(stderr=stderr)
    return Console(stderr=stderr, width=200, color_system=None, highlight=False,
                   soft_wrap=True, force_terminal=False)


# -----------------------------------------------------------------------------
# FORMATTING
# -----------------------------------------------------------------------------

def format_bytes(size: int) -> str:
    """
    Convert a byte count to a short human-readable string.

    Uses binary steps (1024) and at most one decimal: 1536 -> "1.5 KB",
    1024 -> "1 KB".
    """
    value = float(max(0, size))
    order = 0
    while value >= 1024 and order < len(_UNITS) - 1:
        order += 1
        value /= 1024
    text = f"{round(value, 1):.1f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[order]}"


def size_bar(part: int, whole: int, width: int = DEFAULT_BAR_WIDTH) -> str:
    """Fixed-width bar whose filled share equals part/whole."""
    if width <= 0:
        return ""
    filled = 0 if whole <= 0 else round(width * part / whole)
    filled = min(width, max(0, filled))
    return "█" * filled + "░" * (width - filled)


# -----------------------------------------------------------------------------
# LINE BUILDERS
# -----------------------------------------------------------------------------

def flat_lines(rows: Sequence[DirectoryReport], *, show_files: bool = True) -> List[Text]:
    """
    Lines of the flat listing, one block per directory.

    Each block opens with the directory path and its sizes, lists the
    immediate files when requested, and closes with a separator.
    """
    lines: List[Text] = []
    for row in rows:
        header = Text.assemble(
            ("┌─ ", "dark_cyan"),
            (row.path, "bold"),
            (f"  ({format_bytes(row.own_size)}", "green"),
            (f" / total {format_bytes(row.total_size)})", "dim"),
        )
        label = _STATUS_LABELS.get(row.status)
        if label:
            header.append(f"  [{label}]", style="yellow")
        lines.append(header)

        if show_files:
            for f in row.files:
                lines.append(Text.assemble(
                    ("│  ├─ ", "grey70"),
                    f"{f.name} ({format_bytes(f.size)})",
                ))
        lines.append(Text(_SEPARATOR, style="dark_cyan"))
    return lines


def tree_lines(
        root: DirectoryNode,
        index: SizeIndex,
        *,
        max_depth: int = 0,
        show_files: bool = False,
        bar_width: int = DEFAULT_BAR_WIDTH,
) -> List[Text]:
    """
    Lines of the tree view with bars proportional to the root total.

    Args:
        root: Root of the tree.
        index: Sizes computed for `root`.
        max_depth: Deepest level expanded below the root; 0 = unlimited.
        show_files: List immediate files under each directory.
        bar_width: Width of the proportional bar; 0 hides it.
    """
    whole = index.root_total
    lines: List[Text] = [_tree_label(root, index, whole, "", bar_width)]

    stack = _child_entries(root, "", 1, max_depth, show_files)
    while stack:
        entry, prefix, is_last, depth = stack.pop()
        connector = "└── " if is_last else "├── "

        if isinstance(entry, DirectoryNode):
            lines.append(_tree_label(entry, index, whole, prefix + connector, bar_width))
            new_prefix = prefix + ("    " if is_last else "│   ")
            stack.extend(_child_entries(entry, new_prefix, depth + 1, max_depth, show_files))
        else:
            lines.append(Text.assemble(
                (prefix + connector, "dark_cyan"),
                (f"{entry.name} ({format_bytes(entry.size)})", "grey70"),
            ))
    return lines


def _child_entries(
        node: DirectoryNode,
        prefix: str,
        depth: int,
        max_depth: int,
        show_files: bool,
) -> List[Tuple[object, str, bool, int]]:
    """Entries drawn below `node`, reversed so a stack pops them in display order."""
    if max_depth and depth > max_depth:
        return []

    entries: List[object] = list(node.children)
    if show_files:
        entries.extend(node.files)
    last = len(entries) - 1
    return [(entry, prefix, i == last, depth) for i, entry in enumerate(entries)][::-1]


def _tree_label(node: DirectoryNode, index: SizeIndex, whole: int,
                lead: str, bar_width: int) -> Text:
    total = index.total(node)
    text = Text(lead, style="dark_cyan")
    if bar_width:
        text.append(size_bar(total, whole, bar_width) + " ", style="magenta")
    text.append(node.path if not lead else node.name, style="bold")
    text.append(f" {format_bytes(total)}", style="green")
    label = _STATUS_LABELS.get(node.status)
    if label:
        text.append(f" [{label}]", style="yellow")
    return text


def summary_lines(index: SizeIndex) -> List[Text]:
    """Closing summary: directory count, root total and any undercount."""
    lines = [Text.assemble(
        ("Total: ", "bold"),
        (format_bytes(index.root_total), "bold green"),
        f" in {len(index)} directories",
    )]
    if not index.is_complete:
        lines.append(Text(
            f"Warning: {len(index.degraded)} director"
            f"{'y' if len(index.degraded) == 1 else 'ies'} could not be read; "
            f"sizes above undercount those subtrees.",
            style="yellow",
        ))
    if index.revisited:
        count = len(index.revisited)
        lines.append(Text(
            f"Note: {count} linked director{'y' if count == 1 else 'ies'} "
            f"already counted elsewhere {'was' if count == 1 else 'were'} not counted again.",
            style="dim",
        ))
    return lines


def print_lines(console: Console, lines: Sequence[Text]) -> None:
    for line in lines:
        console.print(line, overflow="ignore", crop=False)


# -----------------------------------------------------------------------------
# PROGRESS
# -----------------------------------------------------------------------------

@contextmanager
def scan_progress(console: Console, root_path: str,
                  enabled: bool = True) -> Iterator[Optional[Callable[[str], None]]]:
    """
    Show an animated spinner with a directory counter while a build runs.

    Yields a callback for TreeBuilder's `progress_callback`, or None when
    disabled or when the console is not interactive.
    """
    if not enabled or not console.is_terminal:
        yield None
        return

    with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TextColumn("{task.completed} directories"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
    ) as progress:
        task_id = progress.add_task(f"Exploring {root_path}", total=None)

        def _advance(_path: str) -> None:
            progress.advance(task_id)

        yield _advance
