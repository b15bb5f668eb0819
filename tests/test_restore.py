"""Tests for the restore engine."""

from __future__ import annotations

from pathlib import Path

import pytest

import pylo.organization.restore as restore_module
from pylo.context import RunContext, RunMode
from pylo.discovery import PathSetScanner
from pylo.filesystem import FsResult
from pylo.organization import RestoreEngine
from pylo.state import MappingStore
from pylo.state.sidecar import MappingSidecar


def _stores(tmp_path: Path) -> tuple[MappingSidecar, MappingStore]:
    state = tmp_path / "state"
    return MappingSidecar(MappingStore(state / "files.json")), MappingStore(state / "dirs.json")


def _renamed_desktop(tmp_path: Path) -> tuple[Path, MappingSidecar, MappingStore]:
    """Create a desktop as it looks after a rename run."""
    root = tmp_path / "desktop"
    root.mkdir()
    sidecar, dir_map = _stores(tmp_path)
    (root / "pylo.docx").write_text("report", encoding="utf-8")
    (root / "pylo1.docx").write_text("notes", encoding="utf-8")
    (root / "pylo").mkdir()
    sidecar.write_name(root / "pylo.docx", "report.docx")
    sidecar.write_name(root / "pylo1.docx", "notes.docx")
    dir_map.set(root / "pylo", "photos")
    dir_map.save()
    return root, sidecar, dir_map


def _restore(root: Path, sidecar: MappingSidecar, dir_map: MappingStore, **flags) -> RunContext:
    context = RunContext(mode=RunMode.RESTORE, **flags)
    paths = PathSetScanner().scan([root])
    RestoreEngine(sidecar, dir_map).restore(paths, context)
    return context


def _listing(root: Path) -> set[str]:
    return {entry.name for entry in root.iterdir()}


def test_restore_returns_original_names(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)

    context = _restore(root, sidecar, dir_map)

    assert _listing(root) == {"report.docx", "notes.docx", "photos"}
    assert (root / "report.docx").read_text(encoding="utf-8") == "report"
    assert context.restored == 3
    assert context.errors == 0
    assert set(context.changes) == {
        "pylo.docx -> report.docx",
        "pylo1.docx -> notes.docx",
        "pylo -> photos",
    }
    assert MappingStore(dir_map.path).load().get(root / "pylo") is None
    assert sidecar.read_name(root / "report.docx") is None


def test_restore_disambiguates_occupied_targets(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    (root / "report.docx").write_text("recreated by user", encoding="utf-8")
    (root / "photos").mkdir()

    _restore(root, sidecar, dir_map)

    assert (root / "report.docx").read_text(encoding="utf-8") == "recreated by user"
    assert (root / "report (restored 1).docx").read_text(encoding="utf-8") == "report"
    assert (root / "photos (restored 1)").is_dir()


def test_two_claimants_of_one_name_do_not_collide(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    sidecar.write_name(root / "pylo1.docx", "report.docx")

    dry = _restore(root, sidecar, dir_map, dry_run=True)
    real = _restore(root, sidecar, dir_map)

    assert {"report.docx", "report (restored 1).docx"} <= _listing(root)
    assert sorted(dry.changes) == sorted(real.changes)


def test_missing_metadata_is_skipped_not_errored(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    sidecar.forget(root / "pylo1.docx")
    (root / "unrelated.txt").write_text("never renamed", encoding="utf-8")

    context = _restore(root, sidecar, dir_map)

    assert "pylo1.docx" in _listing(root)
    assert "unrelated.txt" in _listing(root)
    assert context.restored == 2
    assert context.skipped == 2
    assert context.errors == 0


def test_already_restored_directory_is_skipped(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    first = _restore(root, sidecar, dir_map)
    assert first.restored == 3

    (root / "photos").rename(root / "pylo")
    second = _restore(root, sidecar, MappingStore(dir_map.path).load())

    assert "pylo" in _listing(root)
    assert second.restored == 0
    assert second.errors == 0
    assert second.skipped == 3


def test_stored_names_are_sanitized(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    sidecar.write_name(root / "pylo.docx", "Q1: plan?.docx")

    _restore(root, sidecar, dir_map)

    assert "Q1_ plan_.docx" in _listing(root)


def test_dry_run_restore_touches_nothing(tmp_path: Path) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    before = _listing(root)

    context = _restore(root, sidecar, dir_map, dry_run=True)

    assert _listing(root) == before
    assert context.restored == 3
    assert MappingStore(dir_map.path).load().get(root / "pylo") == "photos"


def test_failed_restore_counts_an_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root, sidecar, dir_map = _renamed_desktop(tmp_path)
    monkeypatch.setattr(
        restore_module, "move", lambda source, destination: FsResult.failure("busy")
    )

    context = _restore(root, sidecar, dir_map)

    assert context.restored == 0
    assert context.errors == 3
    assert context.skipped == 0
    assert MappingStore(dir_map.path).load().get(root / "pylo") == "photos"
