"""Rendering and delivery of run outcomes."""

from .console import changes_table, format_summary, outcome_payload, render_outcome
from .webhook import WebhookReporter

__all__ = [
    "WebhookReporter",
    "changes_table",
    "format_summary",
    "outcome_payload",
    "render_outcome",
]
