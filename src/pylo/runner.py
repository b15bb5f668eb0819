"""Top-level orchestration of rename and restore runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pylo.config.models import PyloConfig
from pylo.context import RunContext, RunMode, RunOutcome
from pylo.discovery import LockProber, PathSetScanner
from pylo.organization import ItemKind, NamePlanner, RenameItem, RestoreEngine, TwoPhaseRenamer
from pylo.organization.models import TEMP_DIR_SUFFIX, TEMP_FILE_SUFFIX, is_run_artifact
from pylo.state import MappingStore
from pylo.state.sidecar import SidecarStore, build_sidecar

LOGGER = logging.getLogger(__name__)


def default_roots(config: PyloConfig) -> list[Path]:
    """Return the configured roots, or the user's Desktop when none are set."""
    if config.run.roots:
        return [Path(root) for root in config.run.roots]
    return [Path.home() / "Desktop"]


class PyloRunner:
    """Wire discovery, planning, execution, and metadata stores for one invocation.

    Stores are opened inside `run`, so failing to prepare the application-data
    directory is reported as a fatal run error rather than raised.
    """

    def __init__(
        self,
        config: PyloConfig,
        *,
        sidecar: Optional[SidecarStore] = None,
        dir_map: Optional[MappingStore] = None,
        scanner: Optional[PathSetScanner] = None,
        prober: Optional[LockProber] = None,
    ) -> None:
        self.config = config
        self._sidecar = sidecar
        self._dir_map = dir_map
        self.scanner = scanner or PathSetScanner(
            ignore_suffixes=(TEMP_FILE_SUFFIX, TEMP_DIR_SUFFIX)
        )
        self.prober = prober or LockProber()
        self.planner = NamePlanner(
            prefix=config.naming.prefix,
            extension_policy=config.naming.extension_policy,
        )

    @property
    def app_dir(self) -> Path:
        return Path(self.config.storage.app_dir).expanduser()

    def run(
        self,
        mode: RunMode,
        roots: Sequence[Path],
        *,
        dry_run: bool,
    ) -> RunOutcome:
        """Execute one run and return its outcome.

        Args:
            mode: Rename or restore.
            roots: Folders whose immediate entries are processed. Each is expanded
                and resolved to an absolute path, so stored keys match whichever
                form a later run is given.
            dry_run: Report without touching the filesystem.

        Returns:
            RunOutcome: Counters and change lines, also produced after a fatal error.
        """
        resolved = [Path(root).expanduser().resolve() for root in roots]
        context = RunContext(mode=mode, dry_run=dry_run, roots=resolved)
        try:
            self.app_dir.mkdir(parents=True, exist_ok=True)
            sidecar, dir_map = self._open_stores()
            if mode is RunMode.RENAME:
                self._rename(context, sidecar, dir_map)
            else:
                self._restore(context, sidecar, dir_map)
        except Exception as exc:
            LOGGER.exception("Fatal error during %s run", mode.value)
            context.record_fatal(exc)
        return context.finish()

    def _open_stores(self) -> tuple[SidecarStore, MappingStore]:
        storage = self.config.storage
        dir_map = self._dir_map or MappingStore(self.app_dir / storage.dir_map_filename)
        dir_map.load()
        sidecar = self._sidecar or build_sidecar(
            storage.sidecar, MappingStore(self.app_dir / storage.file_map_filename)
        )
        return sidecar, dir_map

    def _rename(self, context: RunContext, sidecar: SidecarStore, dir_map: MappingStore) -> None:
        paths = self.scanner.scan(context.roots)
        candidates: list[RenameItem] = []
        groups = ((ItemKind.FILE, paths.files), (ItemKind.DIRECTORY, paths.directories))
        for kind, entries in groups:
            for path in entries:
                if is_run_artifact(path):
                    context.record_skip(path, "left over from an interrupted run")
                    continue
                if self.prober.is_locked(path):
                    context.record_skip(path, "in use")
                    continue
                candidates.append(self.planner.describe(path, kind))

        snapshots = {folder: self.scanner.snapshot(folder) for folder in _parents(candidates)}
        plan = self.planner.build_plan(candidates, snapshots)
        LOGGER.info("Planned %d rename(s) under %d root(s)", len(plan.items), len(context.roots))
        TwoPhaseRenamer(sidecar, dir_map).apply(plan, context)

    def _restore(self, context: RunContext, sidecar: SidecarStore, dir_map: MappingStore) -> None:
        paths = self.scanner.scan(context.roots)
        engine = RestoreEngine(
            sidecar, dir_map, extension_policy=self.config.naming.extension_policy
        )
        engine.restore(paths, context)


def _parents(items: Iterable[RenameItem]) -> list[Path]:
    return list(dict.fromkeys(item.original_path.parent for item in items))


__all__ = ["PyloRunner", "default_roots"]
