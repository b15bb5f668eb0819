"""Rename plan data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

DIRECTORY_GROUP = "<DIR>"
TEMP_FILE_SUFFIX = ".pylo_tmp"
TEMP_DIR_SUFFIX = ".pylo_tmpdir"
LEFTOVER_SUFFIX = ".leftover"
ARTIFACT_SUFFIXES = (TEMP_FILE_SUFFIX, TEMP_DIR_SUFFIX, LEFTOVER_SUFFIX)


def is_run_artifact(path: Path) -> bool:
    """Return True for entries stranded at a temporary or `.leftover` path by an earlier run."""
    return path.name.casefold().endswith(ARTIFACT_SUFFIXES)


class ItemKind(str, Enum):
    """Kind of filesystem entry being renamed."""

    FILE = "file"
    DIRECTORY = "directory"


class RenameItem(BaseModel):
    """A file or directory scheduled for renaming.

    Attributes:
        kind: Whether the entry is a file or a directory.
        original_path: Absolute path at discovery time.
        extension_key: Counter group; the file's extension or `DIRECTORY_GROUP`.
        temporary_path: Isolation path assigned by the renamer.
        final_path: Generated path assigned by the planner.
    """

    kind: ItemKind
    original_path: Path
    extension_key: str
    temporary_path: Optional[Path] = None
    final_path: Optional[Path] = None

    @property
    def is_directory(self) -> bool:
        return self.kind is ItemKind.DIRECTORY

    @property
    def original_name(self) -> str:
        return self.original_path.name

    @property
    def temp_suffix(self) -> str:
        return TEMP_DIR_SUFFIX if self.is_directory else TEMP_FILE_SUFFIX


class RenamePlan(BaseModel):
    """Items with their planned generated names, in processing order."""

    items: List[RenameItem] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    def lines(self) -> list[str]:
        """Return `"<original> -> <generated>"` for every planned item."""
        return [
            f"{item.original_name} -> {item.final_path.name}"
            for item in self.items
            if item.final_path is not None
        ]


__all__ = [
    "ARTIFACT_SUFFIXES",
    "DIRECTORY_GROUP",
    "ItemKind",
    "LEFTOVER_SUFFIX",
    "RenameItem",
    "RenamePlan",
    "TEMP_DIR_SUFFIX",
    "TEMP_FILE_SUFFIX",
    "is_run_artifact",
]
