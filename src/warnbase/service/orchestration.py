"""Maps build commands and compile units onto the aggregator.

The build tool itself (task graph, compiler invocation) is outside this
package.  This adapter only knows the naming conventions: which requested
task names mean *write* or *check*, which variant they ask for, and which
compile units must finish before a project can be finalized.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from warnbase.models.project import CompileUnitKind, ProjectConfig
from warnbase.models.result import DiffResult
from warnbase.models.warning import BaselineMode
from warnbase.parser.normalizer import DiagnosticNormalizer
from warnbase.report.diff import BaselineChecker
from warnbase.service.aggregator import Aggregator
from warnbase.service.events import UnitFinishedEvent, UnitStatus
from warnbase.service.finalizer import BaselineFinalizer, ProjectFiles
from warnbase.settings import Settings
from warnbase.storage.baseline_store import BaselineStore, baseline_file_name

logger = logging.getLogger("warnbase.orchestration")


class ProjectNotFinalizedError(RuntimeError):
    """Raised when a check is requested for a project this build never finalized."""


WRITE_TASK_NAME = "WriteKotlinWarningBaseline"
CHECK_TASK_NAME = "CheckKotlinWarningBaseline"

# The short forms without "Kotlin" are accepted as well.
_WRITE_TASK_RE = re.compile(r"Write(?:Kotlin)?WarningBaseline")
_CHECK_TASK_RE = re.compile(r"Check(?:Kotlin)?WarningBaseline")

KOTLIN_SUFFIXES = (".kt", ".kts")


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


# ---------------------------------------------------------------------------
# Naming conventions
# ---------------------------------------------------------------------------


def mode_from_task_names(task_names: Iterable[str]) -> BaselineMode | None:
    """Write wins over check when both are requested."""
    names = list(task_names)
    if any(_WRITE_TASK_RE.search(name) for name in names):
        return BaselineMode.WRITE
    if any(_CHECK_TASK_RE.search(name) for name in names):
        return BaselineMode.CHECK
    return None


def variant_from_task_names(
    task_names: Iterable[str], supported: Iterable[str], default: str
) -> str:
    """First supported variant named by a requested task, else *default*."""
    simple_names = [name.rsplit(":", 1)[-1].lower() for name in task_names]
    for variant in supported:
        if any(variant.lower() in name for name in simple_names):
            return variant
    return default


def compile_unit_name(kind: CompileUnitKind, variant: str) -> str:
    if kind is CompileUnitKind.MAIN:
        return f"compile{capitalize(variant)}Kotlin"
    if kind is CompileUnitKind.UNIT_TEST:
        return f"compile{capitalize(variant)}UnitTestKotlin"
    # there is no release variant for instrumented tests
    return "compileDebugAndroidTestKotlin"


def multiplatform_unit_name(variant: str, target: str) -> str:
    return f"compile{capitalize(variant)}Kotlin{capitalize(target)}"


def task_name(base: str, variant: str, target: str = "", multiplatform: bool = False) -> str:
    """``<variant><Base>`` or, for multiplatform projects, ``<target><Variant><Base>``."""
    if multiplatform:
        return f"{target}{capitalize(variant)}{base}"
    return f"{variant}{base}"


# ---------------------------------------------------------------------------
# Project layout
# ---------------------------------------------------------------------------


@dataclass
class ProjectLayout:
    """Directories of one project taking part in the build."""

    name: str
    project_dir: Path
    build_dir: Path
    source_roots: list[Path] = field(default_factory=list)

    @classmethod
    def from_directory(
        cls,
        project_dir: Path,
        settings: Settings,
        config: ProjectConfig | None = None,
        name: str | None = None,
    ) -> ProjectLayout:
        project_dir = project_dir.resolve()
        config = config or ProjectConfig()
        if config.source_roots:
            roots = [(project_dir / root).resolve() for root in config.source_roots]
        else:
            roots = sorted(
                path
                for pattern in ("src/*/kotlin", "src/*/java")
                for path in project_dir.glob(pattern)
                if path.is_dir()
            )
        return cls(
            name=name or project_dir.name,
            project_dir=project_dir,
            build_dir=project_dir / settings.build_dir_name,
            source_roots=roots,
        )

    def has_sources(self) -> bool:
        for root in self.source_roots:
            if not root.is_dir():
                continue
            if any(p.suffix in KOTLIN_SUFFIXES for p in root.rglob("*") if p.is_file()):
                return True
        return False

    def scratch_dir(self, settings: Settings) -> Path:
        return self.build_dir / settings.scratch_dir_name

    def files(self, settings: Settings, variant: str, target: str) -> ProjectFiles:
        name = baseline_file_name(variant, target, prefix=settings.baseline_file_prefix)
        return ProjectFiles(
            baseline_file=self.project_dir / name,
            scratch_file=self.scratch_dir(settings) / name,
        )

    def normalizer(self) -> DiagnosticNormalizer:
        return DiagnosticNormalizer(self.source_roots, base_dir=self.project_dir)


# ---------------------------------------------------------------------------
# Build invocation
# ---------------------------------------------------------------------------


class BuildInvocation:
    """State for one build: owns the aggregator and its finalizer.

    Construct it with the task names the user requested; then configure
    each project, forward unit events and diagnostics, and finally call
    :meth:`check` for check builds.
    """

    def __init__(
        self,
        task_names: Iterable[str],
        settings: Settings | None = None,
        store: BaselineStore | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.task_names = list(task_names)
        self.mode = mode_from_task_names(self.task_names)
        self.variant = variant_from_task_names(
            self.task_names, self.settings.supported_variants, self.settings.default_variant
        )
        self.store = store or BaselineStore()
        self.finalizer = BaselineFinalizer(self.store)
        self.aggregator = Aggregator(self.finalizer)
        self._layouts: dict[str, ProjectLayout] = {}

    # -- configuration -------------------------------------------------------

    def configure_project(
        self,
        layout: ProjectLayout,
        variant: str,
        target: str = "android",
        kinds: Iterable[CompileUnitKind] | None = None,
    ) -> set[str]:
        """Register the compile units of a single-platform project.

        Returns the units registered (empty if the project is skipped).
        """
        if not layout.has_sources():
            logger.info("Project '%s' has no Kotlin sources, skipping", layout.name)
            return set()
        kinds = list(kinds if kinds is not None else self.settings.compile_units)
        units = {compile_unit_name(kind, variant) for kind in kinds}
        if not all(
            self.variant.lower() in unit.lower() or "androidtest" in unit.lower()
            for unit in units
        ):
            logger.debug("Variant %s of '%s' not requested, skipping", variant, layout.name)
            return set()
        return self._register(layout, units, variant, target)

    def configure_multiplatform_target(
        self, layout: ProjectLayout, target: str, variant: str = ""
    ) -> set[str]:
        """Register the compile unit of one multiplatform target."""
        if not layout.has_sources():
            logger.info("Project '%s' has no Kotlin sources, skipping", layout.name)
            return set()
        if not any(target.lower() in name.lower() for name in self.task_names):
            return set()
        unit = multiplatform_unit_name(variant, target)
        if "android" in target.lower() and self.variant.lower() not in unit.lower():
            return set()
        return self._register(layout, {unit}, variant, target)

    def _register(
        self, layout: ProjectLayout, units: set[str], variant: str, target: str
    ) -> set[str]:
        if self.mode is None:
            return set()
        self._layouts[layout.name] = layout
        self.finalizer.register(layout.name, layout.files(self.settings, variant, target))
        self.aggregator.register_required_units(
            layout.name, units, self.mode, normalizer=layout.normalizer()
        )
        logger.debug("'%s' waits for %s (%s)", layout.name, sorted(units), self.mode)
        return units

    # -- inbound -------------------------------------------------------------

    def unit_finished(self, event: UnitFinishedEvent) -> bool:
        return self.aggregator.on_event(event)

    def diagnostic(self, project: str, raw_line: str) -> bool:
        return self.aggregator.ingest_diagnostic(project, raw_line)

    def run_unit(self, project: str, unit: str, lines: Iterable[str]) -> bool:
        """Feed a whole unit's output, then report it finished successfully."""
        for line in lines:
            self.diagnostic(project, line)
        return self.unit_finished(UnitFinishedEvent(project, unit, UnitStatus.SUCCESS))

    # -- outbound ------------------------------------------------------------

    def check(self, project: str, regenerate_hint: str | None = None) -> DiffResult:
        """Compare *project*'s scratch snapshot to its baseline.

        Raises :class:`~warnbase.report.diff.BaselineCheckFailed` on new warnings
        and :class:`ProjectNotFinalizedError` if this build did not produce the
        snapshot, so a stale one from an earlier build is never compared.
        """
        if not self.aggregator.is_finalized(project):
            raise ProjectNotFinalizedError(
                f"Not every compile unit of '{project}' completed; nothing to check"
            )
        files = self.finalizer.files_for(project)
        if regenerate_hint is None:
            regenerate_hint = f"warnbase write --variant {self.variant}"
        checker = BaselineChecker(self.store)
        return checker.check(files.scratch_file, files.baseline_file, regenerate_hint)

    def close(self) -> None:
        self.aggregator.close()

    def __enter__(self) -> BuildInvocation:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def remove_baselines(
    layout: ProjectLayout, settings: Settings, store: BaselineStore | None = None
) -> list[Path]:
    """Delete all baseline files of *layout* and its scratch directory."""
    store = store or BaselineStore()
    return store.remove_all(
        settings.baseline_file_prefix, layout.project_dir, layout.scratch_dir(settings)
    )
