from __future__ import annotations

"""
Directory Tree Data Models.

Provides the immutable structural nodes produced by the exploration engine.
A node is constructed only once all of its children are complete, so a
parent never holds a partially built child and the finished tree can be
shared across threads without locking.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Tuple

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

class NodeStatus(str, Enum):
    """Outcome of enumerating a single directory."""

    OK = "ok"
    ACCESS_DENIED = "access_denied"
    VANISHED = "vanished"
    REVISITED = "revisited"


@dataclass(frozen=True)
class FileEntry:
    """
    Represents a regular file found directly inside a directory.

    Attributes:
        name: Base name of the file.
        size: Size in bytes (never negative).
    """
    name: str
    size: int


@dataclass(frozen=True, eq=False)
class DirectoryNode:
    """
    Represents one directory, its immediate files and its child directories.

    Nodes compare and hash by identity so they can key size caches without
    walking their subtrees.

    Attributes:
        path: Path of the directory as reached during the build.
        children: Child directories in enumeration order.
        files: Immediate files in enumeration order.
        status: Enumeration outcome. Anything other than OK means the node
                carries no children and no files.
    """
    path: str
    children: Tuple["DirectoryNode", ...] = ()
    files: Tuple[FileEntry, ...] = ()
    status: NodeStatus = NodeStatus.OK

    @property
    def name(self) -> str:
        return os.path.basename(self.path.rstrip("/\\")) or self.path

    @property
    def is_degraded(self) -> bool:
        return self.status is not NodeStatus.OK

    @property
    def own_size(self) -> int:
        """Sum of the sizes of the files held directly by this node."""
        return sum(f.size for f in self.files)

    def flatten(self) -> Iterator["DirectoryNode"]:
        """Yield this node and all of its descendants in pre-order."""
        return flatten(self)


# -----------------------------------------------------------------------------
# TRAVERSAL
# -----------------------------------------------------------------------------

def flatten(node: DirectoryNode) -> Iterator[DirectoryNode]:
    """
    Linearize a tree depth-first, pre-order.

    The node comes first, then each child's own flattened sequence in
    `children` order. Uses an explicit stack so deep trees do not hit the
    interpreter recursion limit. Every call returns a fresh iterator.

    Args:
        node: Root of the subtree to walk.

    Yields:
        DirectoryNode: Each node of the subtree exactly once.
    """
    stack: List[DirectoryNode] = [node]
    while stack:
        current = stack.pop()
        yield current
        # Reversed push keeps children in their original order on pop
        stack.extend(reversed(current.children))


def degraded_node(path: str, status: NodeStatus) -> DirectoryNode:
    """Create an empty leaf that records why a directory was not enumerated."""
    return DirectoryNode(path=path, status=status)
