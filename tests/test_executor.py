"""Tests for the two-phase renamer."""

from __future__ import annotations

from pathlib import Path

import pytest

import pylo.organization.executor as executor_module
from pylo.context import RunContext, RunMode
from pylo.filesystem import FsResult, move
from pylo.organization import ItemKind, NamePlanner, RenamePlan, TwoPhaseRenamer
from pylo.state import MappingStore
from pylo.state.sidecar import MappingSidecar


def _desktop(tmp_path: Path) -> Path:
    root = tmp_path / "desktop"
    root.mkdir()
    (root / "report.docx").write_text("report", encoding="utf-8")
    (root / "notes.docx").write_text("notes", encoding="utf-8")
    (root / "photos").mkdir()
    (root / "photos" / "cat.jpg").write_text("meow", encoding="utf-8")
    return root


def _plan(root: Path) -> RenamePlan:
    planner = NamePlanner()
    items = [
        planner.describe(root / "report.docx", ItemKind.FILE),
        planner.describe(root / "notes.docx", ItemKind.FILE),
        planner.describe(root / "photos", ItemKind.DIRECTORY),
    ]
    snapshot = {entry.name.casefold() for entry in root.iterdir()}
    return planner.build_plan(items, {root: snapshot})


def _stores(tmp_path: Path) -> tuple[MappingSidecar, MappingStore]:
    state = tmp_path / "state"
    return MappingSidecar(MappingStore(state / "files.json")), MappingStore(state / "dirs.json")


def _listing(root: Path) -> set[str]:
    return {entry.name for entry in root.iterdir()}


def test_apply_renames_and_records_original_names(tmp_path: Path) -> None:
    root = _desktop(tmp_path)
    sidecar, dir_map = _stores(tmp_path)
    context = RunContext(mode=RunMode.RENAME)

    TwoPhaseRenamer(sidecar, dir_map).apply(_plan(root), context)

    assert _listing(root) == {"pylo.docx", "pylo1.docx", "pylo"}
    assert (root / "pylo.docx").read_text(encoding="utf-8") == "report"
    assert (root / "pylo" / "cat.jpg").exists()
    assert sidecar.read_name(root / "pylo.docx") == "report.docx"
    assert sidecar.read_name(root / "pylo1.docx") == "notes.docx"
    assert MappingStore(dir_map.path).load().get(root / "pylo") == "photos"
    assert context.renamed == 3
    assert context.skipped == 0
    assert context.errors == 0
    assert context.changes == [
        "report.docx -> pylo.docx",
        "notes.docx -> pylo1.docx",
        "photos -> pylo",
    ]


def test_dry_run_reports_plan_without_touching_anything(tmp_path: Path) -> None:
    root = _desktop(tmp_path)
    sidecar, dir_map = _stores(tmp_path)
    before = _listing(root)
    dry = RunContext(mode=RunMode.RENAME, dry_run=True)

    TwoPhaseRenamer(sidecar, dir_map).apply(_plan(root), dry)

    assert _listing(root) == before
    assert not dir_map.path.exists()
    assert not sidecar.store.path.exists()

    real = RunContext(mode=RunMode.RENAME)
    TwoPhaseRenamer(sidecar, dir_map).apply(_plan(root), real)

    assert dry.changes == real.changes
    assert (dry.renamed, dry.skipped, dry.errors) == (real.renamed, real.skipped, real.errors)


def test_isolation_failure_skips_only_that_item(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root = _desktop(tmp_path)
    sidecar, dir_map = _stores(tmp_path)
    context = RunContext(mode=RunMode.RENAME)

    def _flaky_move(source: Path, destination: Path) -> FsResult:
        if source.name == "notes.docx":
            return FsResult.failure("PermissionError: denied")
        return move(source, destination)

    monkeypatch.setattr(executor_module, "move", _flaky_move)

    TwoPhaseRenamer(sidecar, dir_map).apply(_plan(root), context)

    assert _listing(root) == {"pylo.docx", "notes.docx", "pylo"}
    assert context.renamed == 2
    assert context.skipped == 1
    assert context.errors == 1
    assert sidecar.read_name(root / "notes.docx") is None
    assert any("isolation failed" in failure for failure in context.failures)


def test_commit_failure_leaves_leftover_marker(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root = _desktop(tmp_path)
    sidecar, dir_map = _stores(tmp_path)
    context = RunContext(mode=RunMode.RENAME)

    def _flaky_move(source: Path, destination: Path) -> FsResult:
        if destination.name in {"pylo1.docx", "pylo"}:
            return FsResult.failure("OSError: device busy")
        return move(source, destination)

    monkeypatch.setattr(executor_module, "move", _flaky_move)

    TwoPhaseRenamer(sidecar, dir_map).apply(_plan(root), context)

    leftovers = sorted(name for name in _listing(root) if name.endswith(".leftover"))
    assert len(leftovers) == 2
    assert any(name.startswith("notes.docx.") and ".pylo_tmp." in name for name in leftovers)
    assert any(name.startswith("photos.") and ".pylo_tmpdir." in name for name in leftovers)
    assert context.renamed == 1
    assert context.errors == 2
    assert context.skipped == 2

    file_leftover = next(root / name for name in leftovers if name.startswith("notes.docx."))
    dir_leftover = next(root / name for name in leftovers if name.startswith("photos."))
    assert sidecar.read_name(file_leftover) == "notes.docx"
    stored = MappingStore(dir_map.path).load()
    assert stored.get(dir_leftover) == "photos"
    assert stored.get(root / "pylo") is None


def test_unstorable_name_blocks_the_rename(tmp_path: Path) -> None:
    root = _desktop(tmp_path)
    _, dir_map = _stores(tmp_path)
    context = RunContext(mode=RunMode.RENAME)

    class _BrokenSidecar(MappingSidecar):
        def write_name(self, path: Path, name: str) -> FsResult:
            return FsResult.failure("read-only store")

    sidecar = _BrokenSidecar(MappingStore(tmp_path / "state" / "files.json"))

    TwoPhaseRenamer(sidecar, dir_map).apply(_plan(root), context)

    assert _listing(root) == {"report.docx", "notes.docx", "pylo"}
    assert context.renamed == 1
    assert context.errors == 2
