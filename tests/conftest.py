"""Shared test fixtures for warnbase."""

from __future__ import annotations

from pathlib import Path

import pytest

from warnbase.parser.normalizer import DiagnosticNormalizer
from warnbase.service.orchestration import ProjectLayout
from warnbase.settings import Settings
from warnbase.storage.baseline_store import BaselineStore

SOURCE_PACKAGE = "src/main/kotlin/com/example/myapplication"

TEST_COMPOSABLE_KT = """\
package com.example.myapplication

class AndroidApp {
    init {
        val test = "hello"
        if(test != null) {
            println(test)
        }
    }
}
"""


def compiler_log(project_dir: Path, *warnings: tuple[str, int, int, str]) -> str:
    """Render kotlinc-style output for *warnings* under *project_dir*'s main source set."""
    lines = ["> Task :android:compileReleaseKotlin"]
    for file_name, line, column, message in warnings:
        path = (project_dir.resolve() / SOURCE_PACKAGE / file_name).as_posix()
        lines.append(f"w: file://{path}:{line}:{column} {message}")
    lines.append("BUILD SUCCESSFUL in 3s")
    return "\n".join(lines) + "\n"


CONDITION_WARNING = ("TestComposable.kt", 6, 12, "Condition 'test != null' is always 'true'")


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env, no environment overrides)."""
    return Settings(_env_file=None, log_level="DEBUG")


@pytest.fixture
def store() -> BaselineStore:
    return BaselineStore()


@pytest.fixture
def normalizer() -> DiagnosticNormalizer:
    return DiagnosticNormalizer(["/home/dev/app/src/main/kotlin"])


@pytest.fixture
def android_project(tmp_path: Path) -> Path:
    """A project directory with one Kotlin source file."""
    project_dir = tmp_path / "android"
    source_dir = project_dir / SOURCE_PACKAGE
    source_dir.mkdir(parents=True)
    (source_dir / "TestComposable.kt").write_text(TEST_COMPOSABLE_KT, encoding="utf-8")
    return project_dir


@pytest.fixture
def layout(android_project: Path, settings: Settings) -> ProjectLayout:
    return ProjectLayout.from_directory(android_project, settings)
