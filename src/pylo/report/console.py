"""Console rendering of run outcomes."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from pylo.context import RunMode, RunOutcome


def format_summary(outcome: RunOutcome) -> str:
    """Return the one-line plain-text summary of a run."""
    prefix = "[Dry Run] " if outcome.dry_run else ""
    if outcome.mode is RunMode.RESTORE:
        counts = f"Restored={outcome.restored}"
    else:
        counts = f"Renamed={outcome.renamed}"
    return f"{prefix}Done. {counts}, Skipped={outcome.skipped}, Errors={outcome.errors}"


def outcome_payload(outcome: RunOutcome) -> dict[str, Any]:
    """Return a JSON-ready description of the outcome."""
    payload = outcome.model_dump(mode="json")
    payload["elapsed_seconds"] = round(outcome.elapsed.total_seconds(), 3)
    return payload


def changes_table(outcome: RunOutcome) -> Table:
    """Build a table of the outcome's change lines."""
    heading = "Planned changes" if outcome.dry_run else "Changes"
    table = Table(title=f"{outcome.title}: {heading}", show_lines=False)
    table.add_column("From", overflow="fold")
    table.add_column("To", overflow="fold")
    for line in outcome.changes:
        source, _, target = line.partition(" -> ")
        table.add_row(Text(source), Text(target))
    return table


def render_outcome(
    console: Console,
    outcome: RunOutcome,
    *,
    quiet: bool = False,
    summary_only: bool = False,
) -> None:
    """Print the outcome honoring quiet and summary-only preferences."""
    if quiet:
        if outcome.errors:
            console.print(f"[red]{escape(format_summary(outcome))}[/red]")
        return

    if not summary_only and outcome.changes:
        console.print(changes_table(outcome))

    if not summary_only and outcome.failures:
        console.print("[red]Errors encountered:[/red]")
        for failure in outcome.failures:
            console.print(f"  - {failure}", markup=False)

    colour = "green" if not outcome.errors else "yellow"
    console.print(f"[{colour}]{escape(format_summary(outcome))}[/{colour}]")


__all__ = ["changes_table", "format_summary", "outcome_payload", "render_outcome"]
