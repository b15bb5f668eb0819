"""Persistent metadata stores used to restore original names."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterator, Optional

from pylo.filesystem import FsResult

from .errors import MetadataStoreError, StateError

LOGGER = logging.getLogger(__name__)

_FILE_ATTRIBUTE_HIDDEN = 0x2


class MappingStore:
    """A flat JSON document mapping absolute paths to original base names.

    The document is read once by `load` and written back by `save`. A missing or
    unparseable document is treated as empty; neither condition is fatal.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON document.
        """
        self._path = path
        self._entries: dict[str, str] = {}

    @property
    def path(self) -> Path:
        """Return the location of the backing document."""
        return self._path

    def load(self) -> "MappingStore":
        """Replace the in-memory entries with the document's contents.

        Returns:
            MappingStore: The store itself, for chaining.
        """
        try:
            self._entries = self._read()
        except MetadataStoreError as exc:
            LOGGER.warning("%s; starting with an empty mapping.", exc)
            self._entries = {}
        return self

    def save(self) -> FsResult:
        """Persist the in-memory entries.

        Returns:
            FsResult: Whether the document was written.
        """
        try:
            self._write()
        except MetadataStoreError as exc:
            LOGGER.warning("%s", exc)
            return FsResult.failure(str(exc))
        return FsResult.success()

    def get(self, key: Path | str) -> Optional[str]:
        """Return the original name stored for `key`, if any."""
        stored = self._find_key(key)
        return None if stored is None else self._entries[stored]

    def set(self, key: Path | str, value: str) -> None:
        """Record `value` as the original name for `key`."""
        stored = self._find_key(key)
        if stored is not None:
            del self._entries[stored]
        self._entries[str(key)] = value

    def pop(self, key: Path | str) -> Optional[str]:
        """Remove and return the entry for `key`."""
        stored = self._find_key(key)
        if stored is None:
            return None
        return self._entries.pop(stored)

    def rekey(self, old: Path | str, new: Path | str) -> bool:
        """Move the entry stored under `old` to `new`.

        Returns:
            bool: True when an entry existed under `old`.
        """
        value = self.pop(old)
        if value is None:
            return False
        self.set(new, value)
        return True

    def items(self) -> Iterator[tuple[str, str]]:
        """Iterate over stored (path, original name) pairs."""
        return iter(list(self._entries.items()))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, Path)):
            return False
        return self._find_key(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    # Internal helpers -------------------------------------------------

    def _find_key(self, key: Path | str) -> Optional[str]:
        text = str(key)
        if text in self._entries:
            return text
        folded = os.path.normcase(text)
        for candidate in self._entries:
            if os.path.normcase(candidate) == folded:
                return candidate
        return None

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MetadataStoreError(f"Unreadable mapping document {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise MetadataStoreError(f"Mapping document {self._path} is not a JSON object")
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _write(self) -> None:
        staging = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(self._entries, ensure_ascii=False, separators=(",", ":"))
            staging.write_text(payload, encoding="utf-8")
            os.replace(staging, self._path)
        except OSError as exc:
            raise MetadataStoreError(
                f"Unable to write mapping document {self._path}: {exc}"
            ) from exc
        _mark_hidden(self._path)


def _mark_hidden(path: Path) -> None:
    """Set the hidden attribute on Windows; dot-prefixed names are already hidden elsewhere."""
    if os.name != "nt":
        return
    try:
        import ctypes

        kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        attributes = kernel32.GetFileAttributesW(str(path))
        if attributes != -1 and not attributes & _FILE_ATTRIBUTE_HIDDEN:
            kernel32.SetFileAttributesW(str(path), attributes | _FILE_ATTRIBUTE_HIDDEN)
    except (AttributeError, OSError) as exc:  # pragma: no cover - Windows only
        LOGGER.debug("Could not mark %s hidden: %s", path, exc)


__all__ = ["MappingStore", "MetadataStoreError", "StateError"]
