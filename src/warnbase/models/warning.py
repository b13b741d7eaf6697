"""Warning record and baseline mode models."""

from __future__ import annotations

from enum import StrEnum
from functools import total_ordering

from pydantic import BaseModel, ConfigDict, Field


class BaselineMode(StrEnum):
    WRITE = "write"
    CHECK = "check"


@total_ordering
class WarningRecord(BaseModel):
    """A single compiler warning, positioned relative to a source root.

    Identity is the canonical string ``"<file>:<line>:<column> <message>"``.
    Moving the warning to another line makes it a different warning.
    """

    model_config = ConfigDict(frozen=True)

    file_path: str
    line: int = Field(ge=0)
    column: int = Field(ge=0)
    message: str

    @property
    def canonical(self) -> str:
        return f"{self.file_path}:{self.line}:{self.column} {self.message}"

    def __str__(self) -> str:
        return self.canonical

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WarningRecord):
            return NotImplemented
        return self.canonical == other.canonical

    def __lt__(self, other: WarningRecord) -> bool:
        return self.canonical < other.canonical

    def __hash__(self) -> int:
        return hash(self.canonical)
