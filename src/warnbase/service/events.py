"""Structured compilation-unit lifecycle events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class UnitStatus(StrEnum):
    SUCCESS = "success"
    UP_TO_DATE = "up-to-date"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def counts_toward_completion(self) -> bool:
        return self is not UnitStatus.FAILED


@dataclass(frozen=True)
class UnitFinishedEvent:
    """A compilation unit of *project* finished with *status*."""

    project: str
    unit: str
    status: UnitStatus
