"""Discovery data models."""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class PathSet(BaseModel):
    """Immediate children discovered under one or more roots.

    Attributes:
        files: Regular files, in enumeration order.
        directories: Directories, in enumeration order.
    """

    files: List[Path] = Field(default_factory=list)
    directories: List[Path] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files) + len(self.directories)


__all__ = ["PathSet"]
