"""Filesystem primitives that report failures as values instead of raising."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

LOGGER = logging.getLogger(__name__)


class FsResult(BaseModel):
    """Outcome of a single filesystem operation.

    Attributes:
        ok: Whether the operation completed.
        error: Human-readable failure description when `ok` is false.
    """

    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "FsResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: OSError | str) -> "FsResult":
        if isinstance(reason, OSError):
            detail = reason.strerror or str(reason)
            reason = f"{type(reason).__name__}: {detail}"
        return cls(ok=False, error=reason)


def path_exists(path: Path) -> bool:
    """Return True when anything (file, directory, or dangling link) occupies `path`."""
    return os.path.lexists(path)


def move(source: Path, destination: Path) -> FsResult:
    """Rename `source` to `destination` within the same volume.

    The destination must be free; an occupied destination is reported as a failure
    rather than overwritten.
    """
    if path_exists(destination):
        return FsResult.failure(f"Destination already exists: {destination}")
    try:
        os.rename(source, destination)
    except OSError as exc:
        LOGGER.debug("Rename %s -> %s failed: %s", source, destination, exc)
        return FsResult.failure(exc)
    return FsResult.success()


__all__ = ["FsResult", "move", "path_exists"]
