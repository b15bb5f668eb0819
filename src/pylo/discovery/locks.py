"""Best-effort detection of files and directories held open by other processes."""

from __future__ import annotations

import logging
import os
from pathlib import Path

try:
    import fcntl
except ImportError:  # pragma: no cover - Windows
    fcntl = None  # type: ignore[assignment]
    import msvcrt

LOGGER = logging.getLogger(__name__)


class LockProber:
    """Report whether an item is in use and must be skipped.

    A file counts as locked when it cannot be opened for read/write (and, on POSIX,
    when an exclusive advisory lock cannot be taken without blocking). A directory
    counts as locked when its contents cannot be listed.
    """

    def is_locked(self, path: Path) -> bool:
        if path.is_dir():
            return self._directory_locked(path)
        return self._file_locked(path)

    def _file_locked(self, path: Path) -> bool:
        try:
            with open(path, "r+b") as handle:
                if fcntl is not None:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                elif path.stat().st_size:
                    msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
                    msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
        except OSError as exc:
            LOGGER.debug("File %s is locked: %s", path, exc)
            return True
        return False

    def _directory_locked(self, path: Path) -> bool:
        try:
            with os.scandir(path) as iterator:
                next(iterator, None)
        except OSError as exc:
            LOGGER.debug("Directory %s is locked: %s", path, exc)
            return True
        return False


__all__ = ["LockProber"]
