from __future__ import annotations

"""
Directory Listing Primitives.

Stateless, single-level enumeration of a directory. Access denial is absorbed
into an empty result; a path that vanished or any other I/O failure is raised
as a typed error. Recursive descent belongs to the tree builder.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Tuple

from dirscope.domain.errors import PathVanishedError, ScanIOError
from dirscope.domain.tree_models import FileEntry

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# DATA MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class DirectoryListing:
    """
    Result of enumerating one directory.

    Attributes:
        path: Directory that was enumerated.
        subdirectories: Full paths of the immediate subdirectories, by name.
        files: Immediate regular files with their sizes, by name.
        access_denied: True when the directory could not be read. Both
                       sequences are empty in that case.
    """
    path: str
    subdirectories: Tuple[str, ...] = ()
    files: Tuple[FileEntry, ...] = ()
    access_denied: bool = False


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def list_entries(
        path: str,
        *,
        follow_symlinks: bool = False,
        tolerate_vanished: bool = False,
) -> DirectoryListing:
    """
    Enumerate the immediate subdirectories and files of a directory.

    Entries are returned sorted by name so repeated scans of an unchanged
    directory produce the same order. Symbolic links are skipped unless
    `follow_symlinks` is set, in which case they are classified by their
    target and dangling links are ignored.

    Args:
        path: Directory to enumerate.
        follow_symlinks: Classify symlinked entries by their target.
        tolerate_vanished: Skip entries removed between enumeration and
                           measurement instead of raising.

    Returns:
        DirectoryListing: The enumeration, flagged when access was denied.

    Raises:
        PathVanishedError: `path` disappeared, or one of its entries did
                           and `tolerate_vanished` is off.
        ScanIOError: Any other I/O failure.
    """
    try:
        with os.scandir(path) as it:
            entries = sorted(it, key=lambda e: e.name)
    except PermissionError as e:
        return _denied(path, path, e)
    except (FileNotFoundError, NotADirectoryError) as e:
        raise PathVanishedError(path, e) from e
    except OSError as e:
        raise ScanIOError(path, e) from e

    subdirectories: List[str] = []
    files: List[FileEntry] = []

    for entry in entries:
        if not follow_symlinks and entry.is_symlink():
            logger.debug(f"Skipping symbolic link: {entry.path}")
            continue
        try:
            if entry.is_dir(follow_symlinks=follow_symlinks):
                subdirectories.append(entry.path)
            elif entry.is_file(follow_symlinks=follow_symlinks):
                st = entry.stat(follow_symlinks=follow_symlinks)
                files.append(FileEntry(name=entry.name, size=max(0, st.st_size)))
        except PermissionError as e:
            return _denied(path, entry.path, e)
        except FileNotFoundError as e:
            if not tolerate_vanished:
                raise PathVanishedError(entry.path, e) from e
            logger.warning(f"Entry vanished during scan, skipped: {entry.path}")
        except OSError as e:
            raise ScanIOError(entry.path, e) from e

    return DirectoryListing(
        path=path,
        subdirectories=tuple(subdirectories),
        files=tuple(files),
    )


def list_subdirectories(path: str, *, follow_symlinks: bool = False) -> List[str]:
    """
    List the immediate subdirectories of `path`, one level deep.

    An unreadable directory yields an empty list, indistinguishable here
    from a genuinely empty one. Use `list_entries` to tell them apart.
    """
    return list(list_entries(path, follow_symlinks=follow_symlinks).subdirectories)


def list_files(path: str, *, follow_symlinks: bool = False) -> List[FileEntry]:
    """List the immediate regular files of `path` with their sizes."""
    return list(list_entries(path, follow_symlinks=follow_symlinks).files)


def _denied(path: str, culprit: str, error: PermissionError) -> DirectoryListing:
    logger.warning(f"Access denied: {culprit} ({error.strerror or error})")
    return DirectoryListing(path=path, access_denied=True)
