"""Scratch directory for intermediate page images.

A ``TempWorkspace`` is owned by the pipeline that creates it and torn
down with ``close()`` or a ``with`` block. Each page image is released
as soon as its OCR attempt finishes. The optional termination hooks only
sweep workspaces that are still open when the process exits or is
interrupted.
"""

import atexit
import shutil
import signal
import tempfile
import threading
import time
import uuid
import weakref
from pathlib import Path

from docverify.utils.logger import get_logger

logger = get_logger(__name__)

_live_workspaces: "weakref.WeakSet[TempWorkspace]" = weakref.WeakSet()
_hooks_installed = False
_previous_handlers: dict[int, object] = {}


class TempWorkspace:
    """Private working directory with per-file lifecycle tracking.

    Args:
        root: Directory to place files in. When ``None`` a fresh private
            directory is created and removed again on ``close()``. A given
            root may be shared by several workspaces; each one only ever
            deletes the files it created itself.
    """

    def __init__(self, root: Path | str | None = None) -> None:
        if root is None:
            self.root = Path(tempfile.mkdtemp(prefix="docverify-"))
            self._owns_root = True
        else:
            self.root = Path(root)
            self.root.mkdir(parents=True, exist_ok=True)
            self._owns_root = False
        self._entries: set[Path] = set()
        self._lock = threading.Lock()
        self.closed = False
        _live_workspaces.add(self)
        logger.debug("Workspace ready at %s", self.root)

    def __enter__(self) -> "TempWorkspace":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def new_path(self, prefix: str = "page", suffix: str = ".png") -> Path:
        """Reserve a collision-free file path inside the workspace."""
        if self.closed:
            raise RuntimeError("Workspace is closed")
        name = f"{prefix}_{time.time_ns()}_{uuid.uuid4().hex[:12]}{suffix}"
        path = self.root / name
        with self._lock:
            self._entries.add(path)
        return path

    def release(self, path: Path) -> None:
        """Delete one file now. Failures are logged, never raised."""
        with self._lock:
            self._entries.discard(path)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete temp file %s: %s", path, exc)

    def sweep(self) -> int:
        """Remove every file this workspace created and has not released.

        Returns:
            Number of leftover entries that were removed.
        """
        with self._lock:
            leftovers = list(self._entries)
            self._entries.clear()

        removed = 0
        for path in leftovers:
            try:
                if path.exists():
                    path.unlink()
                    removed += 1
            except OSError as exc:
                logger.warning("Could not delete temp file %s: %s", path, exc)
        if removed:
            logger.info("Swept %d leftover temp file(s) from %s", removed, self.root)
        return removed

    def close(self) -> None:
        """Sweep leftovers and remove the directory if this workspace made it."""
        if self.closed:
            return
        self.sweep()
        self.closed = True
        _live_workspaces.discard(self)
        if self._owns_root:
            try:
                shutil.rmtree(self.root)
            except OSError as exc:
                logger.warning("Could not remove workspace %s: %s", self.root, exc)


def sweep_live_workspaces() -> None:
    """Best-effort sweep of every workspace still open in this process."""
    for workspace in list(_live_workspaces):
        try:
            workspace.sweep()
        except Exception as exc:
            logger.error("Error cleaning up workspace %s: %s", workspace.root, exc)


def _handle_termination(signum: int, frame: object) -> None:
    sweep_live_workspaces()
    previous = _previous_handlers.get(signum)
    if previous is signal.SIG_IGN:
        return
    if callable(previous):
        previous(signum, frame)
    elif signum == signal.SIGINT:
        raise KeyboardInterrupt
    else:
        raise SystemExit(128 + signum)


def install_termination_hooks() -> bool:
    """Sweep live workspaces on interpreter exit and on SIGINT/SIGTERM.

    Signal handlers can only be installed from the main thread; elsewhere
    only the exit hook is registered.

    Returns:
        True if the hooks were installed by this call.
    """
    global _hooks_installed
    if _hooks_installed:
        return False

    atexit.register(sweep_live_workspaces)
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            _previous_handlers[signum] = signal.getsignal(signum)
            signal.signal(signum, _handle_termination)
    _hooks_installed = True
    logger.debug("Installed workspace termination hooks")
    return True
