"""Delivery of run outcomes to a Discord-compatible webhook."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

import requests

from pylo.context import RunOutcome

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_MARKER = "PUT_YOUR_WEBHOOK_HERE"
ATTACHMENT_NAME = "changes.txt"
_DRY_RUN_COLOUR = 0xF1C40F
_EXECUTED_COLOUR = 0x5865F2
_EMPTY_FIELD = "\u200b"


def _field(name: str, value: str, inline: bool) -> dict[str, Any]:
    return {"name": name, "value": value or _EMPTY_FIELD, "inline": inline}


def _timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%SZ")


class WebhookReporter:
    """Post a run outcome as an embed, attaching the full change list when it is long.

    The embed carries a preview of whole change lines up to `preview_chars`. When
    the complete list is longer than that, or has more than
    `attach_line_threshold` lines, it is uploaded as `changes.txt` alongside the
    embed.
    """

    def __init__(
        self,
        url: str,
        *,
        username: str = "Pylo Bot",
        preview_chars: int = 1800,
        attach_line_threshold: int = 50,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url.strip()
        self.username = username
        self.preview_chars = preview_chars
        self.attach_line_threshold = attach_line_threshold
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.url) and PLACEHOLDER_MARKER not in self.url

    def preview(self, outcome: RunOutcome) -> str:
        """Return as many whole change lines as fit in `preview_chars`."""
        lines: list[str] = []
        used = 0
        for line in outcome.changes:
            if used + len(line) + 1 > self.preview_chars:
                break
            lines.append(line)
            used += len(line) + 1
        return "\n".join(lines)

    def needs_attachment(self, outcome: RunOutcome) -> bool:
        if not outcome.changes:
            return False
        full = "\n".join(outcome.changes)
        return len(full) > self.preview_chars or len(outcome.changes) > self.attach_line_threshold

    def build_payload(self, outcome: RunOutcome) -> dict[str, Any]:
        """Build the webhook JSON body for `outcome`."""
        title = outcome.title + (" (Dry Run)" if outcome.dry_run else "")
        description = (
            "Planned changes (no filesystem modifications were made)."
            if outcome.dry_run
            else "Completed changes."
        )
        fields = [
            _field("User", outcome.user, True),
            _field("Machine", outcome.machine, True),
            _field("Roots", "\n".join(outcome.roots), False),
            _field("Mode", "DRY RUN" if outcome.dry_run else "EXECUTED", True),
            _field("Started", _timestamp(outcome.started), True),
            _field("Finished", _timestamp(outcome.finished), True),
            _field("Renamed", str(outcome.renamed), True),
            _field("Restored", str(outcome.restored), True),
            _field("Skipped", str(outcome.skipped), True),
            _field("Errors", str(outcome.errors), True),
        ]
        preview = self.preview(outcome)
        if preview:
            count = len(preview.splitlines())
            fields.append(
                _field(f"Changes (preview, {count} lines)", f"```{preview}```", False)
            )
        embed = {
            "title": title,
            "description": description,
            "color": _DRY_RUN_COLOUR if outcome.dry_run else _EXECUTED_COLOUR,
            "fields": fields,
        }
        return {"username": self.username, "embeds": [embed]}

    def send(self, outcome: RunOutcome) -> bool:
        """Transmit `outcome`; delivery problems are logged, never raised.

        Returns:
            bool: True when the webhook accepted the message.
        """
        if not self.enabled:
            LOGGER.info("Webhook not configured; skipping report delivery.")
            return False

        payload = self.build_payload(outcome)
        try:
            if self.needs_attachment(outcome):
                body = "\n".join(outcome.changes).encode("utf-8")
                response = self._session.post(
                    self.url,
                    data={"payload_json": json.dumps(payload)},
                    files={"file1": (ATTACHMENT_NAME, body, "text/plain")},
                    timeout=self.timeout,
                )
            else:
                response = self._session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            LOGGER.warning("Webhook error: %s", exc)
            return False
        return True


__all__ = ["ATTACHMENT_NAME", "PLACEHOLDER_MARKER", "WebhookReporter"]
