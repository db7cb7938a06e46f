from __future__ import annotations

"""
Size Report Assembly.

Turns a finished tree and its size index into the shapes handed to renderers:
a ranked flat listing of directories and JSON-ready dictionaries. Holds no
formatting logic.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from dirscope.core.aggregation import SizeIndex
from dirscope.domain.tree_models import DirectoryNode, FileEntry, NodeStatus, flatten

SORT_KEYS = ("own", "total")

# -----------------------------------------------------------------------------
# DATA MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class DirectoryReport:
    """
    One row of the flat size listing.

    Attributes:
        path: Directory path.
        own_size: Bytes held by the directory's immediate files.
        total_size: Bytes held by the whole subtree.
        status: Enumeration outcome of the directory.
        files: Immediate files in enumeration order.
    """
    path: str
    own_size: int
    total_size: int
    status: NodeStatus
    files: Tuple[FileEntry, ...]

    @property
    def file_count(self) -> int:
        return len(self.files)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def rank_directories(
        root: DirectoryNode,
        index: SizeIndex,
        *,
        sort_by: str = "own",
        limit: Optional[int] = None,
) -> List[DirectoryReport]:
    """
    List every directory of the tree, largest first.

    The sort is stable, so directories of equal size keep their pre-order
    position.

    Args:
        root: Root of the tree.
        index: Sizes computed for `root`.
        sort_by: "own" ranks by immediate file bytes, "total" by subtree bytes.
        limit: Keep only the first `limit` rows when positive.

    Returns:
        List[DirectoryReport]: Ranked rows.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key '{sort_by}'. Expected one of {SORT_KEYS}")

    rows = [
        DirectoryReport(
            path=node.path,
            own_size=node.own_size,
            total_size=index.total(node),
            status=node.status,
            files=node.files,
        )
        for node in flatten(root)
    ]
    attr = "own_size" if sort_by == "own" else "total_size"
    rows.sort(key=lambda r: getattr(r, attr), reverse=True)

    if limit is not None and limit > 0:
        return rows[:limit]
    return rows


def tree_to_dict(node: DirectoryNode, index: SizeIndex, max_depth: int = 0) -> Dict[str, Any]:
    """
    Serialize a subtree, sizes included, into nested dictionaries.

    Built with an explicit stack, so arbitrarily deep trees are accepted.
    Nodes deeper than `max_depth` below `node` are left out (0 = unlimited);
    totals still cover them.
    """
    out = _node_dict(node, index)
    stack: List[Tuple[DirectoryNode, Dict[str, Any], int]] = [(node, out, 0)]
    while stack:
        current, current_dict, depth = stack.pop()
        if max_depth and depth >= max_depth:
            continue
        for child in current.children:
            child_dict = _node_dict(child, index)
            current_dict["children"].append(child_dict)
            stack.append((child, child_dict, depth + 1))
    return out


def _node_dict(node: DirectoryNode, index: SizeIndex) -> Dict[str, Any]:
    return {
        "path": node.path,
        "status": node.status.value,
        "own_size": node.own_size,
        "total_size": index.total(node),
        "files": [{"name": f.name, "size": f.size} for f in node.files],
        "children": [],
    }


def report_to_dict(
        root: DirectoryNode,
        index: SizeIndex,
        rows: Optional[List[DirectoryReport]] = None,
        max_depth: int = 0,
) -> Dict[str, Any]:
    """
    Build the JSON document emitted by the CLI.

    Includes the root total, the completeness flag with the unreadable
    directories, the directories skipped as already counted, and either the
    ranked rows or the nested tree limited to `max_depth` levels.
    """
    out: Dict[str, Any] = {
        "root": root.path,
        "total_size": index.root_total,
        "complete": index.is_complete,
        "degraded": [{"path": n.path, "status": n.status.value} for n in index.degraded],
        "revisited": [n.path for n in index.revisited],
    }
    if rows is not None:
        out["directories"] = [
            {
                "path": r.path,
                "status": r.status.value,
                "own_size": r.own_size,
                "total_size": r.total_size,
                "files": [{"name": f.name, "size": f.size} for f in r.files],
            }
            for r in rows
        ]
    else:
        out["tree"] = tree_to_dict(root, index, max_depth)
    return out
