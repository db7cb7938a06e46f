from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides the application data directory and user-facing path normalization.
Acts as an abstraction over 'os' so Windows and Unix-like systems resolve
paths the same way.
"""

import os
from typing import Optional

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "DirScope"
UNIX_APP_DIR_NAME = ".dirscope"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    The directory is not created here; writers create it on demand.
    Standards:
    - Windows: %LOCALAPPDATA%/DirScope
    - Linux/Mac: ~/.dirscope

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        home = os.path.expanduser("~")
        path = os.path.join(home, UNIX_APP_DIR_NAME)

    return os.path.abspath(path)


def get_home_dir() -> str:
    """Home directory used when no starting directory is supplied."""
    return os.environ.get("HOME") or os.path.expanduser("~")


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Expand user input into a usable path string.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty. The path is
    not made absolute so reports keep the form the user typed.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Expanded path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    return os.path.expandvars(os.path.expanduser(p))


def ensure_parent_dir(path: str) -> None:
    """Create the parent directory hierarchy of a target file if missing."""
    parent = os.path.dirname(os.path.abspath(path))
    if parent:
        os.makedirs(parent, exist_ok=True)
