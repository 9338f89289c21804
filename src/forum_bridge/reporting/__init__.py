"""Progress output and run summaries for Forum Bridge imports."""

from forum_bridge.reporting.progress import ProgressPrinter, format_status
from forum_bridge.reporting.report import ImportStats, ImportSummary, render_summary

__all__ = [
    "ProgressPrinter",
    "format_status",
    "ImportStats",
    "ImportSummary",
    "render_summary",
]
