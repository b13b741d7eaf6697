"""Baseline diffing and failure reports."""

from warnbase.report.diff import (
    BaselineCheckFailed,
    BaselineChecker,
    diff_warnings,
    format_report,
)

__all__ = [
    "BaselineCheckFailed",
    "BaselineChecker",
    "diff_warnings",
    "format_report",
]
