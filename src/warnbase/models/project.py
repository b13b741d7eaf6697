"""Per-project configuration models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class CompileUnitKind(StrEnum):
    MAIN = "main"
    UNIT_TEST = "unit_test"
    ANDROID_TEST = "android_test"


class ProjectConfig(BaseModel):
    """Optional ``warnbase.yaml`` found in a project directory.

    Fields left unset fall back to the global :class:`~warnbase.settings.Settings`.
    """

    compile_units: list[CompileUnitKind] | None = Field(default=None, alias="compileUnits")
    source_roots: list[str] = Field(default_factory=list, alias="sourceRoots")
    targets: list[str] = Field(default_factory=list)
    multiplatform: bool = False

    model_config = {"populate_by_name": True}
