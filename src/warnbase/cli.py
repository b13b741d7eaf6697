"""Command line: ``warnbase write|check|remove``.

Each compilation unit's compiler output is passed as a log file.  Logs are
ingested concurrently, one worker per unit, the same way a build tool would
stream diagnostics from parallel compile tasks::

    warnbase write app --variant release --log build/logs/compileReleaseKotlin.log
    warnbase check app --unit main=main.log --unit unit_test=test.log
    warnbase remove app
"""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from warnbase import __version__
from warnbase.models.project import CompileUnitKind
from warnbase.parser.config_loader import ProjectConfigError, load_project_config
from warnbase.report.diff import BaselineCheckFailed
from warnbase.service.events import UnitFinishedEvent, UnitStatus
from warnbase.service.orchestration import (
    CHECK_TASK_NAME,
    WRITE_TASK_NAME,
    BuildInvocation,
    ProjectLayout,
    ProjectNotFinalizedError,
    compile_unit_name,
    multiplatform_unit_name,
    remove_baselines,
    task_name,
)
from warnbase.settings import Settings
from warnbase.storage.baseline_store import BaselineReadError, BaselineWriteError

logger = logging.getLogger("warnbase.cli")

EXIT_OK = 0
EXIT_NEW_WARNINGS = 1
EXIT_ERROR = 2


class UsageError(Exception):
    """Bad command line input detected after argument parsing."""


def _unit_spec(value: str) -> tuple[CompileUnitKind, Path]:
    kind, sep, path = value.partition("=")
    if not sep or not path:
        raise argparse.ArgumentTypeError(f"expected KIND=LOG, got '{value}'")
    try:
        return CompileUnitKind(kind.strip().lower()), Path(path)
    except ValueError:
        choices = ", ".join(k.value for k in CompileUnitKind)
        raise argparse.ArgumentTypeError(f"unknown unit kind '{kind}' ({choices})") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="warnbase",
        description="Enforce a 'no new compiler warnings' policy with a baseline file.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("project_dir", nargs="?", default=".", type=Path,
                       help="Project directory (default: current directory)")
        p.add_argument("--name", help="Project name (default: directory name)")

    for command, help_text in (
        ("write", "Recompute and persist the baseline unconditionally"),
        ("check", "Fail if the build has warnings that are not in the baseline"),
    ):
        p = sub.add_parser(command, help=help_text)
        add_common(p)
        p.add_argument("--variant", help="Build variant (default from settings)")
        p.add_argument("--target", default=None,
                       help="Target name used in the baseline file name (default: android)")
        p.add_argument("--multiplatform", action="store_true",
                       help="Treat the project as a multiplatform project")
        p.add_argument("--source-root", action="append", default=[], dest="source_roots",
                       help="Source root warnings are made relative to (repeatable)")
        p.add_argument("--log", action="append", default=[], type=Path, dest="logs",
                       help="Compiler output of the main compile unit")
        p.add_argument("--unit", action="append", default=[], type=_unit_spec, dest="units",
                       metavar="KIND=LOG", help="Compiler output of another compile unit")

    p = sub.add_parser("remove", help="Delete all baseline and scratch files of a project")
    add_common(p)
    return parser


def _read_lines(path: Path) -> list[str]:
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        return handle.read().splitlines()


def _ingest(invocation: BuildInvocation, project: str, unit: str, logs: list[Path]) -> None:
    """Worker body: stream one unit's logs, then report its status."""
    try:
        lines = [line for log in logs for line in _read_lines(log)]
    except OSError as exc:
        logger.error("Cannot read compiler output for %s: %s", unit, exc)
        invocation.unit_finished(UnitFinishedEvent(project, unit, UnitStatus.FAILED))
        return
    invocation.run_unit(project, unit, lines)


def _run_build(args: argparse.Namespace, settings: Settings) -> int:
    config = load_project_config(args.project_dir / settings.project_config_name)
    if args.source_roots:
        config = config.model_copy(update={"source_roots": args.source_roots})
    layout = ProjectLayout.from_directory(args.project_dir, settings, config, name=args.name)

    multiplatform = args.multiplatform or config.multiplatform
    if args.target is not None:
        target = args.target
    elif multiplatform and config.targets:
        target = config.targets[0]
    else:
        target = "android"
    if args.variant is not None:
        variant = args.variant
    elif multiplatform and "android" not in target.lower():
        # non-android multiplatform targets have no build variants
        variant = ""
    else:
        variant = settings.default_variant
    if variant and variant not in settings.supported_variants:
        supported = ", ".join(settings.supported_variants)
        raise UsageError(f"Unsupported variant '{variant}' (supported: {supported})")
    base = WRITE_TASK_NAME if args.command == "write" else CHECK_TASK_NAME
    requested = task_name(base, variant, target, multiplatform)

    logs: dict[CompileUnitKind, list[Path]] = {}
    for kind, path in [(CompileUnitKind.MAIN, p) for p in args.logs] + list(args.units):
        logs.setdefault(kind, []).append(path)

    with BuildInvocation([requested], settings) as invocation:
        if multiplatform:
            kinds = [CompileUnitKind.MAIN]
            registered = invocation.configure_multiplatform_target(layout, target, variant)
            unit_names = {CompileUnitKind.MAIN: multiplatform_unit_name(variant, target)}
        else:
            kinds = config.compile_units or settings.compile_units
            registered = invocation.configure_project(layout, variant, target, kinds)
            unit_names = {kind: compile_unit_name(kind, variant) for kind in kinds}
        if not registered:
            logger.info("Nothing to do for '%s'", layout.name)
            return EXIT_OK

        missing = [kind.value for kind in kinds if kind not in logs]
        if missing:
            raise UsageError(f"No compiler output given for unit(s): {', '.join(missing)}")
        for kind in logs:
            if kind not in kinds:
                logger.warning("Unit kind %s is not configured for '%s', ignoring", kind, layout.name)

        with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
            futures = [
                pool.submit(_ingest, invocation, layout.name, unit_names[kind], logs[kind])
                for kind in kinds
            ]
            for future in futures:
                future.result()

        if not invocation.aggregator.is_finalized(layout.name):
            logger.error("Not every compile unit of '%s' completed; nothing written", layout.name)
            return EXIT_ERROR

        if args.command == "check":
            hint = f"warnbase write {args.project_dir}"
            if variant:
                hint += f" --variant {variant}"
            if args.target is not None:
                hint += f" --target {target}"
            if args.multiplatform:
                hint += " --multiplatform"
            invocation.check(layout.name, regenerate_hint=hint)
    return EXIT_OK


def _run_remove(args: argparse.Namespace, settings: Settings) -> int:
    layout = ProjectLayout.from_directory(args.project_dir, settings, name=args.name)
    removed = remove_baselines(layout, settings)
    for path in removed:
        logger.info("Removed %s", path)
    return EXIT_OK


def run(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Parse *argv* and execute the command; returns the exit code."""
    args = build_parser().parse_args(argv)
    settings = settings or Settings()
    try:
        if args.command == "remove":
            return _run_remove(args, settings)
        return _run_build(args, settings)
    except BaselineCheckFailed as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_NEW_WARNINGS
    except (
        BaselineReadError,
        BaselineWriteError,
        ProjectConfigError,
        ProjectNotFinalizedError,
        UsageError,
    ) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


def main() -> None:
    """Console entry point."""
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())
    sys.exit(run(settings=settings))
