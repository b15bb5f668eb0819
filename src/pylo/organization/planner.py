"""Planner assigning generated names to rename candidates."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from .models import DIRECTORY_GROUP, ItemKind, RenameItem, RenamePlan
from .naming import ExtensionPolicy, split_extension


class NamePlanner:
    """Derive a collision-free generated name for every item.

    Files take `<prefix><ext>` for the first item of an extension group in a folder
    and `<prefix><N><ext>` after that; directories follow the same scheme in their
    own group without an extension. Counters only move forward, so a rejected
    candidate is never offered again.
    """

    def __init__(
        self,
        *,
        prefix: str = "pylo",
        extension_policy: ExtensionPolicy = "first_dot",
    ) -> None:
        self.prefix = prefix
        self.extension_policy = extension_policy

    def describe(self, path: Path, kind: ItemKind) -> RenameItem:
        """Create a plan item for `path`, computing its counter group."""
        if kind is ItemKind.DIRECTORY:
            extension_key = DIRECTORY_GROUP
        else:
            extension_key = split_extension(path.name, self.extension_policy)[1]
        return RenameItem(kind=kind, original_path=path, extension_key=extension_key)

    def build_plan(
        self,
        items: Iterable[RenameItem],
        snapshots: Mapping[Path, set[str]],
    ) -> RenamePlan:
        """Assign `final_path` to every item.

        Args:
            items: Candidates in enumeration order.
            snapshots: Case-folded names present in each parent folder before the run.

        Returns:
            RenamePlan: Plan holding the same items with final paths populated.
        """
        plan = RenamePlan()
        counters: dict[tuple[Path, str], int] = {}
        assigned: dict[Path, set[str]] = {}

        for item in items:
            folder = item.original_path.parent
            existing = snapshots.get(folder, set())
            taken = assigned.setdefault(folder, set())
            group = (folder, item.extension_key.casefold())
            index = counters.get(group, 0)

            while True:
                name = self._candidate(item, index)
                index += 1
                folded = name.casefold()
                if folded not in existing and folded not in taken:
                    break

            counters[group] = index
            taken.add(folded)
            item.final_path = folder / name
            plan.items.append(item)

        return plan

    def _candidate(self, item: RenameItem, index: int) -> str:
        extension = "" if item.is_directory else item.extension_key
        number = str(index) if index else ""
        return f"{self.prefix}{number}{extension}"


__all__ = ["NamePlanner"]
