"""Two-phase executor for rename plans."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, NamedTuple

from pylo.context import RunContext
from pylo.filesystem import move, path_exists
from pylo.state import MappingStore
from pylo.state.sidecar import SidecarStore

from .models import LEFTOVER_SUFFIX, RenameItem, RenamePlan
from .naming import temporary_path

LOGGER = logging.getLogger(__name__)


class _Staged(NamedTuple):
    item: RenameItem
    temp: Path
    final: Path


class TwoPhaseRenamer:
    """Apply rename plans as original -> temporary -> final.

    Before anything moves, each item's original name is saved where a later
    restore can find it. Files keep it in their side-channel and directories in
    the directory mapping. So an interrupted run never leaves an item without
    its original name. Items are handled one at a time, and one item's failure
    never rolls back another.
    """

    def __init__(
        self,
        sidecar: SidecarStore,
        dir_map: MappingStore,
        *,
        temp_attempts: int = 32,
    ) -> None:
        self._sidecar = sidecar
        self._dir_map = dir_map
        self._temp_attempts = temp_attempts

    def apply(self, plan: RenamePlan, context: RunContext) -> None:
        """Execute `plan`, recording every outcome on `context`.

        Args:
            plan: Plan produced by the name planner.
            context: Run context; in dry-run mode the plan is only reported.
        """
        if context.dry_run:
            for item in plan.items:
                if item.final_path is not None:
                    context.record_rename(item.original_name, item.final_path.name)
            return

        isolated = self._isolate(self._stage(plan.items, context), context)
        self._commit(isolated, context)
        self._reconcile(isolated)

    # ------------------------------------------------------------------ #
    # Phases                                                             #
    # ------------------------------------------------------------------ #

    def _stage(self, items: Iterable[RenameItem], context: RunContext) -> list[_Staged]:
        staged: list[_Staged] = []
        for item in items:
            if item.final_path is None:
                context.record_skip(item.original_path, "no generated name planned")
                continue
            temp = temporary_path(
                item.original_path, item.temp_suffix, attempts=self._temp_attempts
            )
            if temp is None:
                context.record_failure(item.original_path, "no free temporary name")
                continue
            item.temporary_path = temp
            staged.append(_Staged(item, temp, item.final_path))
        return staged

    def _isolate(self, staged: list[_Staged], context: RunContext) -> list[_Staged]:
        directories = [entry for entry in staged if entry.item.is_directory]
        for entry in directories:
            self._dir_map.set(entry.temp, entry.item.original_name)
        if directories:
            self._dir_map.save()

        isolated: list[_Staged] = []
        for entry in staged:
            item = entry.item
            if not item.is_directory:
                written = self._sidecar.write_name(item.original_path, item.original_name)
                if not written.ok:
                    context.record_failure(
                        item.original_path, f"cannot store original name ({written.error})"
                    )
                    continue

            result = move(item.original_path, entry.temp)
            if result.ok:
                if not item.is_directory:
                    self._sidecar.relocate(item.original_path, entry.temp)
                isolated.append(entry)
                continue

            context.record_failure(item.original_path, f"isolation failed ({result.error})")
            if item.is_directory:
                self._dir_map.pop(entry.temp)
            else:
                self._sidecar.forget(item.original_path)

        if directories:
            self._dir_map.save()
        return isolated

    def _commit(self, isolated: Iterable[_Staged], context: RunContext) -> None:
        for item, temp, final in isolated:
            if not path_exists(temp):
                context.record_skip(item.original_path, "temporary entry disappeared")
                continue

            if item.is_directory:
                self._dir_map.rekey(temp, final)
                self._dir_map.save()

            result = move(temp, final)
            if result.ok:
                if not item.is_directory:
                    self._sidecar.relocate(temp, final)
                context.record_rename(item.original_name, final.name)
                continue

            context.record_failure(item.original_path, f"commit failed ({result.error})")
            if item.is_directory:
                self._dir_map.rekey(final, temp)

    def _reconcile(self, isolated: list[_Staged]) -> None:
        """Move anything stranded at its temporary path to a `.leftover` marker."""
        for item, temp, _ in isolated:
            if not path_exists(temp):
                continue
            leftover = temp.with_name(temp.name + LEFTOVER_SUFFIX)
            if path_exists(leftover):
                LOGGER.warning("Leaving %s in place; %s already exists.", temp, leftover.name)
                continue
            result = move(temp, leftover)
            if not result.ok:
                LOGGER.warning("Could not mark %s as leftover: %s", temp, result.error)
                continue
            LOGGER.warning("%s stranded between phases; moved to %s", item.original_name, leftover)
            if item.is_directory:
                self._dir_map.rekey(temp, leftover)
            else:
                self._sidecar.relocate(temp, leftover)
        if any(entry.item.is_directory for entry in isolated):
            self._dir_map.save()


__all__ = ["TwoPhaseRenamer"]
