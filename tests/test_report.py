"""Tests for outcome rendering and webhook delivery."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import requests
from rich.console import Console

from pylo.context import RunMode, RunOutcome
from pylo.report import WebhookReporter, format_summary, outcome_payload, render_outcome


def _outcome(changes: list[str] | None = None, **overrides: Any) -> RunOutcome:
    started = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    values: dict[str, Any] = {
        "title": "Pylo Rename",
        "mode": RunMode.RENAME,
        "dry_run": False,
        "user": "alex",
        "machine": "workstation",
        "roots": ["/home/alex/Desktop"],
        "started": started,
        "finished": started + timedelta(seconds=2),
        "renamed": len(changes or []),
        "changes": changes or [],
    }
    values.update(overrides)
    return RunOutcome(**values)


class _FakeResponse:
    def __init__(self, status: int = 204) -> None:
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class _FakeSession:
    def __init__(self, status: int = 204) -> None:
        self.calls: list[dict[str, Any]] = []
        self.status = status

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        return _FakeResponse(self.status)


def test_format_summary_per_mode() -> None:
    assert format_summary(_outcome(["a -> b"], skipped=1)) == (
        "Done. Renamed=1, Skipped=1, Errors=0"
    )
    restore = _outcome(mode=RunMode.RESTORE, title="Pylo Restore", restored=4, dry_run=True)
    assert format_summary(restore) == "[Dry Run] Done. Restored=4, Skipped=0, Errors=0"


def test_outcome_payload_includes_elapsed_time() -> None:
    payload = outcome_payload(_outcome(["a.txt -> pylo.txt"]))

    assert payload["elapsed_seconds"] == 2.0
    assert payload["changes"] == ["a.txt -> pylo.txt"]
    assert payload["mode"] == "rename"


def test_render_outcome_respects_summary_and_quiet() -> None:
    outcome = _outcome(["report.docx -> pylo.docx"])

    console = Console(record=True, width=120)
    render_outcome(console, outcome)
    text = console.export_text()
    assert "report.docx" in text
    assert "Renamed=1" in text

    console = Console(record=True, width=120)
    render_outcome(console, outcome, summary_only=True)
    text = console.export_text()
    assert "report.docx" not in text
    assert "Renamed=1" in text

    console = Console(record=True, width=120)
    render_outcome(console, outcome, quiet=True)
    assert console.export_text() == ""


def test_small_reports_are_sent_as_json() -> None:
    session = _FakeSession()
    reporter = WebhookReporter("https://hooks.example/abc", session=session)

    assert reporter.send(_outcome(["report.docx -> pylo.docx"])) is True

    call = session.calls[0]
    assert "files" not in call
    embed = call["json"]["embeds"][0]
    assert call["json"]["username"] == "Pylo Bot"
    assert embed["title"] == "Pylo Rename"
    fields = {field["name"]: field["value"] for field in embed["fields"]}
    assert fields["Renamed"] == "1"
    assert fields["Mode"] == "EXECUTED"
    assert fields["Changes (preview, 1 lines)"] == "```report.docx -> pylo.docx```"


def test_long_reports_attach_the_full_list() -> None:
    session = _FakeSession()
    reporter = WebhookReporter(
        "https://hooks.example/abc", preview_chars=40, attach_line_threshold=50, session=session
    )
    changes = [f"document-{index}.txt -> pylo{index}.txt" for index in range(5)]

    assert reporter.preview(_outcome(changes)) == changes[0]
    reporter.send(_outcome(changes, dry_run=True))

    call = session.calls[0]
    name, body, content_type = call["files"]["file1"]
    assert name == "changes.txt"
    assert body.decode("utf-8").splitlines() == changes
    assert content_type == "text/plain"
    payload = json.loads(call["data"]["payload_json"])
    assert payload["embeds"][0]["title"] == "Pylo Rename (Dry Run)"


def test_many_short_lines_also_attach() -> None:
    reporter = WebhookReporter("https://hooks.example/abc", attach_line_threshold=3)

    assert reporter.needs_attachment(_outcome(["a -> b"] * 4)) is True
    assert reporter.needs_attachment(_outcome(["a -> b"] * 3)) is False
    assert reporter.needs_attachment(_outcome([])) is False


def test_unconfigured_webhook_is_not_contacted() -> None:
    session = _FakeSession()

    assert WebhookReporter("", session=session).send(_outcome()) is False
    placeholder = WebhookReporter("https://PUT_YOUR_WEBHOOK_HERE", session=session)
    assert placeholder.send(_outcome()) is False
    assert session.calls == []


def test_delivery_errors_are_swallowed() -> None:
    session = _FakeSession(status=500)
    reporter = WebhookReporter("https://hooks.example/abc", session=session)

    assert reporter.send(_outcome(["a -> b"])) is False
