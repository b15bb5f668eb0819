"""Restore engine returning renamed entries to their original names."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pylo.context import RunContext
from pylo.discovery.models import PathSet
from pylo.filesystem import move
from pylo.state import MappingStore
from pylo.state.sidecar import SidecarStore

from .naming import ExtensionPolicy, restore_target, sanitize_name

LOGGER = logging.getLogger(__name__)


class RestoreEngine:
    """Rename files and directories back using their stored original names.

    Files are matched only through their own side-channel and directories only
    through the directory mapping. Anything without a stored name is skipped.
    """

    def __init__(
        self,
        sidecar: SidecarStore,
        dir_map: MappingStore,
        *,
        extension_policy: ExtensionPolicy = "first_dot",
    ) -> None:
        self._sidecar = sidecar
        self._dir_map = dir_map
        self._extension_policy = extension_policy

    def restore(self, paths: PathSet, context: RunContext) -> None:
        """Restore every entry in `paths`, recording outcomes on `context`."""
        claimed: set[str] = set()
        for path in paths.files:
            self._restore_file(path, context, claimed)
        for path in paths.directories:
            self._restore_directory(path, context, claimed)

    def _restore_file(self, path: Path, context: RunContext, claimed: set[str]) -> None:
        original = self._sidecar.read_name(path)
        if not original:
            context.record_skip(path, "no stored original name")
            return
        target = self._target(path, original, is_directory=False, claimed=claimed)
        if target is None:
            context.record_skip(path, "already carries its original name")
            return
        if context.dry_run:
            context.record_restore(path.name, target.name)
            return

        result = move(path, target)
        if not result.ok:
            context.record_failure(path, f"restore failed ({result.error})", skipped=False)
            return
        self._sidecar.relocate(path, target)
        self._sidecar.forget(target)
        context.record_restore(path.name, target.name)

    def _restore_directory(self, path: Path, context: RunContext, claimed: set[str]) -> None:
        original = self._dir_map.get(path)
        if not original:
            context.record_skip(path, "not in the directory mapping")
            return
        target = self._target(path, original, is_directory=True, claimed=claimed)
        if target is None:
            context.record_skip(path, "already carries its original name")
            return
        if context.dry_run:
            context.record_restore(path.name, target.name)
            return

        result = move(path, target)
        if not result.ok:
            context.record_failure(path, f"restore failed ({result.error})", skipped=False)
            return
        self._dir_map.pop(path)
        self._dir_map.save()
        context.record_restore(path.name, target.name)

    def _target(
        self,
        path: Path,
        original: str,
        *,
        is_directory: bool,
        claimed: set[str],
    ) -> Optional[Path]:
        name = sanitize_name(original.strip())
        if not name or name in {".", ".."} or name == path.name:
            return None
        if name != original:
            LOGGER.info("Sanitized stored name %r to %r", original, name)
        target = restore_target(
            path.parent,
            name,
            is_directory=is_directory,
            policy=self._extension_policy,
            claimed=claimed,
        )
        claimed.add(str(target).casefold())
        return target


__all__ = ["RestoreEngine"]
