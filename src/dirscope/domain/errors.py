from __future__ import annotations

"""
Exploration Error Taxonomy.

Defines the exception hierarchy raised by the tree-building engine. Access
denial is never raised: it is absorbed into a degraded node. Every other
failure kind below aborts the build and reaches the caller.
"""

from typing import Optional

# -----------------------------------------------------------------------------
# BASE
# -----------------------------------------------------------------------------

class DirScopeError(Exception):
    """Root of all errors raised by the exploration engine."""


# -----------------------------------------------------------------------------
# FAILURE KINDS
# -----------------------------------------------------------------------------

class InvalidRootError(DirScopeError, ValueError):
    """
    The requested root path does not exist or is not a directory.

    Raised before any concurrent work is started.

    Attributes:
        path: The rejected root path as supplied by the caller.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid root '{path}': {reason}")
        self.path = path
        self.reason = reason


class ScanIOError(DirScopeError, OSError):
    """
    Non-recoverable I/O failure while enumerating a directory.

    Attributes:
        path: Filesystem path that failed.
        cause: The underlying OSError, if any.
    """

    def __init__(self, path: str, cause: Optional[OSError] = None) -> None:
        detail = cause.strerror if cause is not None and cause.strerror else str(cause or "I/O failure")
        super().__init__(f"Failed to scan '{path}': {detail}")
        self.path = path
        self.cause = cause


class PathVanishedError(ScanIOError):
    """A listed path disappeared before it could be entered or measured."""


class BuildCancelledError(DirScopeError):
    """The build was cancelled through its cancellation event."""
