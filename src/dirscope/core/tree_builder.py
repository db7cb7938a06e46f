from __future__ import annotations

"""
Concurrent Directory Tree Builder.

Explores a filesystem subtree with one unit of work per subdirectory and a
join barrier per directory. Work is dispatched into a bounded thread pool;
when every slot is busy the parent explores the child on its own thread, so
recursive joins can never starve the pool and the number of concurrent
listings stays bounded on arbitrarily wide trees.

Access denial degrades the affected node only. Any other failure stops new
descents, waits for the work already started and is re-raised to the caller.
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Set, Union

from dirscope.core.listing import DirectoryListing, list_entries
from dirscope.domain.errors import (
    BuildCancelledError,
    DirScopeError,
    InvalidRootError,
    PathVanishedError,
)
from dirscope.domain.tree_models import DirectoryNode, NodeStatus, degraded_node

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
Lister = Callable[..., DirectoryListing]


def default_max_workers() -> int:
    """Match the sizing ThreadPoolExecutor applies when left unbounded."""
    return min(32, (os.cpu_count() or 1) + 4)


# -----------------------------------------------------------------------------
# BUILD SESSION (PER-PASS STATE)
# -----------------------------------------------------------------------------

class _BuildAborted(DirScopeError):
    """Raised in descents that start after another branch has failed."""


class _BuildSession:
    """
    State shared by every unit of work of a single build pass.

    Holds the canonical paths already entered, the pool slots and the abort
    flag. Nodes themselves are never shared: each one is created by the task
    that explored it.
    """

    def __init__(self, executor: ThreadPoolExecutor, max_workers: int,
                 cancel_event: Optional[threading.Event],
                 follow_symlinks: bool = False) -> None:
        self.executor = executor
        self.follow_symlinks = follow_symlinks
        self.slots = threading.BoundedSemaphore(max_workers)
        self.cancel_event = cancel_event
        self.aborted = threading.Event()
        self._visited: Set[str] = set()
        self._lock = threading.Lock()
        self.directories = 0
        self.degraded = 0

    def checkpoint(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise BuildCancelledError("Build cancelled")
        if self.aborted.is_set():
            raise _BuildAborted("Build aborted by a failure in another branch")

    def claim(self, path: str) -> bool:
        """
        Register the canonical form of `path`; False if already entered.

        Links are only resolved when they are followed; otherwise every
        entered directory is a real child of its parent.
        """
        resolved = os.path.realpath(path) if self.follow_symlinks else os.path.abspath(path)
        canonical = os.path.normcase(resolved)
        with self._lock:
            if canonical in self._visited:
                return False
            self._visited.add(canonical)
            self.directories += 1
            return True

    def record_degraded(self) -> None:
        with self._lock:
            self.degraded += 1


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

class TreeBuilder:
    """
    Build immutable DirectoryNode trees from the filesystem.

    With `follow_symlinks`, a directory reachable under several names is
    expanded once, under whichever name is entered first; the others become
    REVISITED leaves. Sibling aliases are explored concurrently, so which
    name holds the contents can change between runs. Root totals do not.

    Args:
        max_workers: Pool size; also the bound on concurrent listings
                     besides the calling thread.
        follow_symlinks: Descend into symbolically linked directories.
        tolerate_vanished: Turn a directory that disappears mid-scan into a
                           VANISHED leaf, and skip entries that disappear
                           while being measured, instead of aborting.
        progress_callback: Called with each directory path as it is entered.
                           Invoked from worker threads.
        cancel_event: Checked before every descent; setting it aborts the
                      build with BuildCancelledError.
        lister: Single-level listing primitive, called like `list_entries`.
    """

    def __init__(
            self,
            max_workers: Optional[int] = None,
            *,
            follow_symlinks: bool = False,
            tolerate_vanished: bool = False,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_event: Optional[threading.Event] = None,
            lister: Lister = list_entries,
    ) -> None:
        if max_workers is None:
            max_workers = default_max_workers()
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.max_workers = max_workers
        self.follow_symlinks = follow_symlinks
        self.tolerate_vanished = tolerate_vanished
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.lister = lister

    def build(self, root_path: str) -> DirectoryNode:
        """
        Explore `root_path` and return the fully populated tree.

        Args:
            root_path: Directory to explore, absolute or relative.

        Returns:
            DirectoryNode: The root of the finished, read-only tree.

        Raises:
            InvalidRootError: The root is missing or not a directory.
            PathVanishedError: A path disappeared mid-scan (unless tolerated).
            ScanIOError: Any other I/O failure.
            BuildCancelledError: The cancellation event was set.
        """
        _validate_root(root_path)

        logger.info(f"Exploring directory tree: {root_path} (workers: {self.max_workers})")
        started = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="ExplorerWorker") as executor:
            session = _BuildSession(executor, self.max_workers, self.cancel_event,
                                    self.follow_symlinks)
            try:
                root = self._explore(root_path, session)
            except DirScopeError as e:
                session.aborted.set()
                logger.error(f"Tree build aborted: {e}")
                raise
            except BaseException:
                # Interrupted: stop new descents before the pool joins its workers
                session.aborted.set()
                raise

        logger.info(
            f"Tree build finished in {time.perf_counter() - started:.2f}s. "
            f"Directories: {session.directories}, degraded: {session.degraded}"
        )
        return root

    # -------------------------------------------------------------------------
    # EXPLORATION
    # -------------------------------------------------------------------------

    def _explore(self, path: str, session: _BuildSession) -> DirectoryNode:
        """
        Build the subtree at `path` on the current thread.

        Subdirectories go to the pool while slots are free. The rest are
        explored here through an explicit stack, so tree depth never grows
        the call stack. Every node is created after all of its children.
        """
        entered = self._enter(path, session)
        if isinstance(entered, DirectoryNode):
            return entered

        stack: List[_PendingDirectory] = [entered]
        while True:
            top = stack[-1]
            sub = None if session.aborted.is_set() else top.next_subdirectory()

            if sub is not None:
                if session.slots.acquire(blocking=False):
                    top.outcomes.append(session.executor.submit(self._run_pooled, sub, session))
                    continue
                # Pool saturated: explore on the current thread
                try:
                    entered = self._enter(sub, session)
                except Exception as e:
                    session.aborted.set()
                    top.outcomes.append(e)
                    continue
                if isinstance(entered, DirectoryNode):
                    top.outcomes.append(entered)
                else:
                    stack.append(entered)
                continue

            stack.pop()
            try:
                node = top.finish()
            except Exception as e:
                if not stack:
                    raise
                session.aborted.set()
                stack[-1].outcomes.append(e)
                continue

            if not stack:
                return node
            stack[-1].outcomes.append(node)

    def _enter(
            self,
            path: str,
            session: _BuildSession,
    ) -> Union[DirectoryNode, _PendingDirectory]:
        """Claim and list one directory; leaves come back already built."""
        session.checkpoint()

        if not session.claim(path):
            logger.warning(f"Directory already entered in this pass, not descending: {path}")
            return degraded_node(path, NodeStatus.REVISITED)

        if self.progress_callback is not None:
            self.progress_callback(path)

        try:
            listing = self.lister(
                path,
                follow_symlinks=self.follow_symlinks,
                tolerate_vanished=self.tolerate_vanished,
            )
        except PathVanishedError as e:
            if not self.tolerate_vanished:
                raise
            logger.warning(f"Directory vanished during scan: {path} ({e})")
            session.record_degraded()
            return degraded_node(path, NodeStatus.VANISHED)

        if listing.access_denied:
            session.record_degraded()
            return degraded_node(path, NodeStatus.ACCESS_DENIED)

        logger.debug(
            f"Listed {path}: {len(listing.subdirectories)} dirs, {len(listing.files)} files"
        )
        if not listing.subdirectories:
            return DirectoryNode(path=path, files=listing.files)
        return _PendingDirectory(path, listing)

    def _run_pooled(self, path: str, session: _BuildSession) -> DirectoryNode:
        try:
            return self._explore(path, session)
        except BaseException:
            session.aborted.set()
            raise
        finally:
            session.slots.release()


class _PendingDirectory:
    """A listed directory whose children are still being explored."""

    def __init__(self, path: str, listing: DirectoryListing) -> None:
        self.path = path
        self.files = listing.files
        self.subdirectories = listing.subdirectories
        self.outcomes: List[Union[Future, DirectoryNode, Exception]] = []
        self._next = 0

    def next_subdirectory(self) -> Optional[str]:
        if self._next >= len(self.subdirectories):
            return None
        sub = self.subdirectories[self._next]
        self._next += 1
        return sub

    def finish(self) -> DirectoryNode:
        """
        Join on every started unit, in enumeration order, and build the node.

        Raises:
            Exception: The first real failure among the children, preferred
                       over the abort markers of siblings that stopped early.
        """
        children: List[DirectoryNode] = []
        failure: Optional[Exception] = None

        for outcome in self.outcomes:
            if isinstance(outcome, Future):
                try:
                    outcome = outcome.result()
                except Exception as e:
                    outcome = e
            if isinstance(outcome, Exception):
                if failure is None or (isinstance(failure, _BuildAborted)
                                       and not isinstance(outcome, _BuildAborted)):
                    failure = outcome
                continue
            children.append(outcome)

        if failure is not None:
            raise failure
        return DirectoryNode(path=self.path, children=tuple(children), files=self.files)


def build_tree(root_path: str, **options) -> DirectoryNode:
    """Build a tree with a one-off TreeBuilder. See TreeBuilder for options."""
    return TreeBuilder(**options).build(root_path)


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _validate_root(root_path: str) -> None:
    """Fail fast on a root that cannot be explored."""
    if not root_path or not str(root_path).strip():
        raise InvalidRootError(str(root_path), "empty path")
    if not os.path.exists(root_path):
        raise InvalidRootError(root_path, "path does not exist")
    if not os.path.isdir(root_path):
        raise InvalidRootError(root_path, "not a directory")
