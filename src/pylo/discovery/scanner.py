"""Enumeration of the top-level entries of root folders."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .models import PathSet

LOGGER = logging.getLogger(__name__)

_SKIPPED_ATTRIBUTES = getattr(stat, "FILE_ATTRIBUTE_SYSTEM", 0x4) | getattr(
    stat, "FILE_ATTRIBUTE_REPARSE_POINT", 0x400
)


def _is_excluded(entry: os.DirEntry[str]) -> bool:
    """Return True for symlinks and entries carrying system or reparse-point attributes."""
    if entry.is_symlink():
        return True
    attributes = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    return bool(attributes & _SKIPPED_ATTRIBUTES)


class PathSetScanner:
    """List immediate child files and directories of root folders (non-recursive)."""

    def __init__(self, *, ignore_suffixes: Sequence[str] = ()) -> None:
        """Initialize the scanner.

        Args:
            ignore_suffixes: Name suffixes excluded from pre-run snapshots.
        """
        self.ignore_suffixes = tuple(suffix.lower() for suffix in ignore_suffixes)

    def scan(self, roots: Iterable[Path]) -> PathSet:
        """Return the files and directories directly under each root.

        Inaccessible roots and entries are omitted rather than failing the scan.
        """
        result = PathSet()
        for root in roots:
            for entry in self._iter_entries(Path(root)):
                try:
                    if _is_excluded(entry):
                        LOGGER.debug("Skipping system or linked entry %s", entry.path)
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        result.directories.append(Path(entry.path))
                    elif entry.is_file(follow_symlinks=False):
                        result.files.append(Path(entry.path))
                except OSError as exc:
                    LOGGER.debug("Skipping inaccessible entry %s: %s", entry.path, exc)
        return result

    def snapshot(self, folder: Path) -> set[str]:
        """Return the case-folded names present in `folder` before a run.

        Temporary artifacts left by earlier runs are excluded so they never block a
        generated name.
        """
        names: set[str] = set()
        for entry in self._iter_entries(folder):
            try:
                if _is_excluded(entry):
                    continue
            except OSError:
                continue
            folded = entry.name.casefold()
            if folded.endswith(self.ignore_suffixes):
                continue
            names.add(folded)
        return names

    def _iter_entries(self, folder: Path) -> Iterator[os.DirEntry[str]]:
        try:
            with os.scandir(folder) as iterator:
                yield from iterator
        except OSError as exc:
            LOGGER.debug("Cannot enumerate %s: %s", folder, exc)


__all__ = ["PathSetScanner"]
