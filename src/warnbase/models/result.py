"""Diff and finalization result models."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel

from warnbase.models.warning import BaselineMode


class CheckOutcome(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    NO_BASELINE = "no_baseline"  # passed, but compared against an empty baseline


class DiffResult(BaseModel):
    """Warnings present in the current build but missing from the baseline."""

    new_warnings: list[str] = []
    baseline_existed: bool = True

    @property
    def passed(self) -> bool:
        return not self.new_warnings

    @property
    def outcome(self) -> CheckOutcome:
        if not self.passed:
            return CheckOutcome.FAILED
        if not self.baseline_existed:
            return CheckOutcome.NO_BASELINE
        return CheckOutcome.PASSED


class FinalizationResult(BaseModel):
    """What finalization did for one project."""

    project: str
    mode: BaselineMode
    path: Path
    warning_count: int
    deleted: bool = False
