"""Per-invocation run state and the outcome handed to reporters."""

from __future__ import annotations

import getpass
import logging
import platform
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)


class RunMode(str, Enum):
    """Direction of a run."""

    RENAME = "rename"
    RESTORE = "restore"

    @property
    def title(self) -> str:
        return "Pylo Rename" if self is RunMode.RENAME else "Pylo Restore"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RunOutcome(BaseModel):
    """Structured result of a run.

    Attributes:
        title: Human-readable run title.
        mode: Run direction.
        dry_run: Whether the filesystem was left untouched.
        user: Account the run executed as.
        machine: Host name.
        roots: Folders processed.
        started: Start timestamp (UTC).
        finished: Finish timestamp (UTC).
        renamed: Items given generated names.
        restored: Items returned to their original names.
        skipped: Items not processed.
        errors: Failed operations.
        changes: Every `"<from> -> <to>"` line, untruncated and in order.
        failures: Descriptions of failed operations.
    """

    title: str
    mode: RunMode
    dry_run: bool
    user: str
    machine: str
    roots: List[str] = Field(default_factory=list)
    started: datetime
    finished: datetime
    renamed: int = 0
    restored: int = 0
    skipped: int = 0
    errors: int = 0
    changes: List[str] = Field(default_factory=list)
    failures: List[str] = Field(default_factory=list)

    @property
    def elapsed(self) -> timedelta:
        return self.finished - self.started

    @property
    def processed(self) -> int:
        return self.renamed if self.mode is RunMode.RENAME else self.restored


class RunContext(BaseModel):
    """Mode flags and counters threaded through every stage of one run."""

    mode: RunMode
    dry_run: bool = False
    roots: List[Path] = Field(default_factory=list)
    started: datetime = Field(default_factory=_now)
    renamed: int = 0
    restored: int = 0
    skipped: int = 0
    errors: int = 0
    changes: List[str] = Field(default_factory=list)
    failures: List[str] = Field(default_factory=list)

    def record_rename(self, source_name: str, target_name: str) -> None:
        self.renamed += 1
        self.changes.append(f"{source_name} -> {target_name}")

    def record_restore(self, source_name: str, target_name: str) -> None:
        self.restored += 1
        self.changes.append(f"{source_name} -> {target_name}")

    def record_skip(self, path: Path, reason: str) -> None:
        self.skipped += 1
        LOGGER.debug("Skipped %s: %s", path, reason)

    def record_failure(self, path: Path, reason: str, *, skipped: bool = True) -> None:
        """Count a failed operation; rename failures also count the item as skipped."""
        self.errors += 1
        if skipped:
            self.skipped += 1
        message = f"{path}: {reason}"
        self.failures.append(message)
        LOGGER.warning("%s", message)

    def record_fatal(self, exc: BaseException) -> None:
        self.errors += 1
        self.failures.append(f"fatal: {type(exc).__name__}: {exc}")

    def finish(self, finished: Optional[datetime] = None) -> RunOutcome:
        """Freeze the context into a `RunOutcome`."""
        return RunOutcome(
            title=self.mode.title,
            mode=self.mode,
            dry_run=self.dry_run,
            user=_current_user(),
            machine=platform.node() or "unknown",
            roots=[str(root) for root in self.roots],
            started=self.started,
            finished=finished or _now(),
            renamed=self.renamed,
            restored=self.restored,
            skipped=self.skipped,
            errors=self.errors,
            changes=list(self.changes),
            failures=list(self.failures),
        )


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


__all__ = ["RunContext", "RunMode", "RunOutcome"]
