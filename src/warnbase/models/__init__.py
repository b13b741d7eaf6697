"""Pydantic domain models for warnbase."""

from warnbase.models.project import CompileUnitKind, ProjectConfig
from warnbase.models.result import CheckOutcome, DiffResult, FinalizationResult
from warnbase.models.warning import BaselineMode, WarningRecord

__all__ = [
    "BaselineMode",
    "CheckOutcome",
    "CompileUnitKind",
    "DiffResult",
    "FinalizationResult",
    "ProjectConfig",
    "WarningRecord",
]
