"""Name splitting, sanitizing, and collision helpers shared by renaming and restoring."""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Literal, Optional

from pylo.filesystem import path_exists

ExtensionPolicy = Literal["first_dot", "last_dot"]

_ILLEGAL_CHARACTERS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def split_extension(name: str, policy: ExtensionPolicy = "first_dot") -> tuple[str, str]:
    """Split `name` into stem and extension.

    A leading dot marks a hidden name, not an extension, so `.bashrc` has none.
    `archive.tar.gz` splits at `.tar.gz` under `first_dot` and at `.gz` under
    `last_dot`.
    """
    if policy == "first_dot":
        index = name.find(".", 1)
    else:
        index = name.rfind(".")
    if index <= 0:
        return name, ""
    return name[:index], name[index:]


def sanitize_name(name: str) -> str:
    """Replace characters that are illegal in file names with underscores."""
    return _ILLEGAL_CHARACTERS.sub("_", name)


def restore_target(
    parent: Path,
    name: str,
    *,
    is_directory: bool,
    policy: ExtensionPolicy = "first_dot",
    claimed: Optional[set[str]] = None,
) -> Path:
    """Return a free path for `name` in `parent`, appending `" (restored N)"` on collision.

    Args:
        parent: Folder the entry is restored into.
        name: Sanitized original name.
        is_directory: Directories never split off an extension.
        policy: Extension policy used to place the suffix before the extension.
        claimed: Case-folded paths already promised to earlier items in this pass.

    Returns:
        Path: Candidate that is neither on disk nor claimed.
    """
    taken = claimed or set()

    def _free(path: Path) -> bool:
        return not path_exists(path) and str(path).casefold() not in taken

    candidate = parent / name
    if _free(candidate):
        return candidate

    stem, extension = (name, "") if is_directory else split_extension(name, policy)
    counter = 1
    while True:
        candidate = parent / f"{stem} (restored {counter}){extension}"
        if _free(candidate):
            return candidate
        counter += 1


def temporary_path(original: Path, suffix: str, *, attempts: int = 32) -> Optional[Path]:
    """Return an unused sibling of `original` carrying a random token and `suffix`.

    Returns:
        Optional[Path]: A free path, or None when every attempt was occupied.
    """
    for _ in range(attempts):
        candidate = original.with_name(f"{original.name}.{uuid.uuid4().hex}{suffix}")
        if not path_exists(candidate):
            return candidate
    return None


__all__ = [
    "ExtensionPolicy",
    "restore_target",
    "sanitize_name",
    "split_extension",
    "temporary_path",
]
