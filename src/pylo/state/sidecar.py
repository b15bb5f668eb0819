"""Per-file side-channel storage for original names.

A renamed file carries its original base name with it so that restoring does not
depend on any external record. NTFS exposes this as an alternate data stream and
most POSIX filesystems as a user extended attribute. Where neither is available,
names fall back to a path-keyed JSON document that the renamer keeps in step with
each move.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional, Protocol

from pylo.filesystem import FsResult

from . import MappingStore

LOGGER = logging.getLogger(__name__)

STREAM_NAME = "pylo.orig"
XATTR_NAME = "user.pylo.orig"


class SidecarStore(Protocol):
    """Capability interface for reading and writing a file's original name."""

    def write_name(self, path: Path, name: str) -> FsResult: ...

    def read_name(self, path: Path) -> Optional[str]: ...

    def relocate(self, source: Path, destination: Path) -> None: ...

    def forget(self, path: Path) -> None: ...


def _clean(value: str | None) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class StreamSidecar:
    """Store the name in an NTFS alternate data stream (`<file>:pylo.orig`)."""

    def _stream(self, path: Path) -> str:
        return f"{path}:{STREAM_NAME}"

    def write_name(self, path: Path, name: str) -> FsResult:
        try:
            with open(self._stream(path), "w", encoding="utf-8") as handle:
                handle.write(name)
        except OSError as exc:
            return FsResult.failure(exc)
        return FsResult.success()

    def read_name(self, path: Path) -> Optional[str]:
        try:
            with open(self._stream(path), encoding="utf-8") as handle:
                return _clean(handle.read())
        except (OSError, UnicodeDecodeError):
            return None

    def relocate(self, source: Path, destination: Path) -> None:
        """Streams move with the file."""

    def forget(self, path: Path) -> None:
        try:
            os.remove(self._stream(path))
        except OSError as exc:
            LOGGER.debug("Could not remove stream on %s: %s", path, exc)


class XattrSidecar:
    """Store the name in the `user.pylo.orig` extended attribute."""

    def write_name(self, path: Path, name: str) -> FsResult:
        try:
            os.setxattr(path, XATTR_NAME, name.encode("utf-8"))
        except OSError as exc:
            return FsResult.failure(exc)
        return FsResult.success()

    def read_name(self, path: Path) -> Optional[str]:
        try:
            raw = os.getxattr(path, XATTR_NAME)
        except OSError:
            return None
        try:
            return _clean(raw.decode("utf-8"))
        except UnicodeDecodeError:
            LOGGER.debug("Ignoring undecodable name attribute on %s", path)
            return None

    def relocate(self, source: Path, destination: Path) -> None:
        """Extended attributes move with the file."""

    def forget(self, path: Path) -> None:
        try:
            os.removexattr(path, XATTR_NAME)
        except OSError as exc:
            LOGGER.debug("Could not remove attribute on %s: %s", path, exc)


class MappingSidecar:
    """Store names in a path-keyed JSON document, re-keyed as files move."""

    def __init__(self, store: MappingStore) -> None:
        self._store = store

    @property
    def store(self) -> MappingStore:
        return self._store

    def write_name(self, path: Path, name: str) -> FsResult:
        self._store.set(path, name)
        return self._store.save()

    def read_name(self, path: Path) -> Optional[str]:
        return _clean(self._store.get(path))

    def relocate(self, source: Path, destination: Path) -> None:
        if self._store.rekey(source, destination):
            self._store.save()

    def forget(self, path: Path) -> None:
        if self._store.pop(path) is not None:
            self._store.save()


class FallbackSidecar:
    """Prefer the native store and fall back to the mapping when it refuses a write."""

    def __init__(self, primary: SidecarStore, secondary: SidecarStore) -> None:
        self._primary = primary
        self._secondary = secondary

    def write_name(self, path: Path, name: str) -> FsResult:
        result = self._primary.write_name(path, name)
        if result.ok:
            return result
        LOGGER.debug("Native name storage failed for %s (%s); using mapping.", path, result.error)
        return self._secondary.write_name(path, name)

    def read_name(self, path: Path) -> Optional[str]:
        return self._primary.read_name(path) or self._secondary.read_name(path)

    def relocate(self, source: Path, destination: Path) -> None:
        self._primary.relocate(source, destination)
        self._secondary.relocate(source, destination)

    def forget(self, path: Path) -> None:
        self._primary.forget(path)
        self._secondary.forget(path)


def native_sidecar() -> Optional[SidecarStore]:
    """Return the platform's native side-channel store, if it has one."""
    if os.name == "nt":
        return StreamSidecar()
    if hasattr(os, "setxattr"):
        return XattrSidecar()
    return None


def build_sidecar(
    kind: Literal["auto", "native", "mapping"],
    file_map: MappingStore,
) -> SidecarStore:
    """Construct the side-channel store selected by configuration.

    Args:
        kind: `native`, `mapping`, or `auto` (native with mapping fallback).
        file_map: Path-keyed document used by the mapping backend; loaded here.

    Returns:
        SidecarStore: Store ready for use.
    """
    mapping = MappingSidecar(file_map.load())
    native = native_sidecar()
    if kind == "mapping":
        return mapping
    if native is None:
        LOGGER.info("No native per-file metadata on this platform; using %s.", file_map.path)
        return mapping
    if kind == "native":
        return native
    return FallbackSidecar(native, mapping)


__all__ = [
    "SidecarStore",
    "StreamSidecar",
    "XattrSidecar",
    "MappingSidecar",
    "FallbackSidecar",
    "native_sidecar",
    "build_sidecar",
]
