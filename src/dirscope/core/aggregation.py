from __future__ import annotations

"""
Subtree Size Aggregation.

Computes the total byte size of every node of a tree in a single bottom-up
pass. Degraded nodes contribute nothing, so totals undercount the subtrees
that could not be read; the index keeps the list of those nodes so the
undercount is always reportable. Directories reached again through a link
are kept apart: their contents are counted where they were first entered.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from dirscope.domain.tree_models import DirectoryNode, NodeStatus

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# SIZE INDEX
# -----------------------------------------------------------------------------

class SizeIndex:
    """
    Per-node own and total sizes for one tree, computed once.

    Attributes:
        root: The node the index was computed for.
        degraded: Nodes whose contents are missing from the totals, in
                  pre-order.
        revisited: Nodes skipped because their directory was already
                   counted under another path, in pre-order.
    """

    def __init__(self, root: DirectoryNode, totals: Dict[int, int],
                 degraded: List[DirectoryNode],
                 revisited: Sequence[DirectoryNode] = ()) -> None:
        self.root = root
        self._totals = totals
        self.degraded: Tuple[DirectoryNode, ...] = tuple(degraded)
        self.revisited: Tuple[DirectoryNode, ...] = tuple(revisited)

    @property
    def root_total(self) -> int:
        return self._totals[id(self.root)]

    @property
    def is_complete(self) -> bool:
        """False when at least one subtree could not be counted."""
        return not self.degraded

    def total(self, node: DirectoryNode) -> int:
        """
        Total size of `node` and all of its descendants.

        Raises:
            KeyError: `node` does not belong to the indexed tree.
        """
        try:
            return self._totals[id(node)]
        except KeyError:
            raise KeyError(f"Node not part of the indexed tree: {node.path}") from None

    @staticmethod
    def own(node: DirectoryNode) -> int:
        return node.own_size

    def __contains__(self, node: object) -> bool:
        return isinstance(node, DirectoryNode) and id(node) in self._totals

    def __len__(self) -> int:
        return len(self._totals)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def compute_sizes(root: DirectoryNode) -> SizeIndex:
    """
    Annotate every node of the tree with its total size.

    Runs an iterative post-order walk, so each node is summed exactly once
    and deep trees do not hit the recursion limit.

    Args:
        root: Root of a finished tree.

    Returns:
        SizeIndex: Totals for every node reachable from `root`.
    """
    totals: Dict[int, int] = {}
    degraded: List[DirectoryNode] = []
    revisited: List[DirectoryNode] = []

    # (node, children_done) pairs; the node is summed on its second visit
    stack: List[Tuple[DirectoryNode, bool]] = [(root, False)]
    while stack:
        node, children_done = stack.pop()
        if children_done:
            totals[id(node)] = node.own_size + sum(totals[id(c)] for c in node.children)
            continue
        if node.status is NodeStatus.REVISITED:
            revisited.append(node)
        elif node.is_degraded:
            degraded.append(node)
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(node.children))

    index = SizeIndex(root, totals, degraded, revisited)
    if degraded:
        logger.warning(
            f"Size totals are incomplete: {len(degraded)} director"
            f"{'y' if len(degraded) == 1 else 'ies'} could not be read"
        )
    return index


def total_size(node: DirectoryNode, index: Optional[SizeIndex] = None) -> int:
    """
    Sum of every file size reachable from `node`.

    Reuses `index` when it covers `node`; otherwise computes a fresh one.
    """
    if index is not None and node in index:
        return index.total(node)
    return compute_sizes(node).total(node)
