"""Invoke tasks for Pylo development.

Every task shells out to `uv` so local runs match the environment the test
suite and linters expect.
"""

from __future__ import annotations

import shlex
import tempfile
from collections.abc import Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent


def _run_uv(ctx: Context, args: Sequence[str], *, echo: bool = True) -> None:
    """Run `uv` with the given arguments from the project root."""
    command = shlex.join(("uv", *args))
    with ctx.cd(str(PROJECT_ROOT)):
        ctx.run(command, echo=echo, pty=True)


@task
def sync(ctx: Context, dev: bool = True) -> None:
    """Install the project into the uv environment, with dev extras by default."""
    args = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _run_uv(ctx, args)


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite."""
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    if path:
        args.append(path)
    _run_uv(ctx, args)


@task(help={"fix": "Apply auto-fixes where possible (ruff --fix)."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Check formatting and lint rules with Ruff."""
    _run_uv(ctx, ["run", "ruff", "format", "--check", "src", "tests"])
    args: list[str] = ["run", "ruff", "check", "src", "tests"]
    if fix:
        args.append("--fix")
    _run_uv(ctx, args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package."""
    _run_uv(ctx, ["run", "mypy", "src"])


@task
def smoke(ctx: Context) -> None:
    """Rename and restore a throwaway folder with the installed CLI.

    Names are kept in the path-keyed mapping so the run works on filesystems
    without extended attributes.
    """
    with tempfile.TemporaryDirectory(prefix="pylo-smoke-") as scratch:
        root = Path(scratch) / "desktop"
        root.mkdir()
        (root / "notes.txt").write_text("notes", encoding="utf-8")
        (root / "archive.tar.gz").write_text("archive", encoding="utf-8")
        (root / "projects").mkdir()
        env = {"HOME": scratch, "PYLO__STORAGE__SIDECAR": "mapping"}
        with ctx.cd(str(PROJECT_ROOT)):
            for command in ("rename", "restore"):
                args = ["uv", "run", "pylo", command, str(root), "--execute"]
                ctx.run(shlex.join(args), pty=True, env=env)
        restored = sorted(entry.name for entry in root.iterdir())
        print(f"Restored entries: {', '.join(restored)}")


@task
def ci(ctx: Context) -> None:
    """Replicate the CI workflow locally."""
    ctx.invoke(lint)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, tests, lint, mypy, smoke, ci)
