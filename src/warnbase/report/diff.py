"""Diff & report engine: current warnings minus the baseline."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from warnbase.models.result import DiffResult
from warnbase.storage.baseline_store import BaselineStore

logger = logging.getLogger("warnbase.report")

DEFAULT_REGENERATE_HINT = "warnbase write --variant <variant>"

_GUIDANCE = """\
Please try and address the warnings listed.
As a last resort, you can regenerate the baseline
`{hint}`
"""


class BaselineCheckFailed(Exception):
    """The current build has warnings that are not in the baseline."""

    def __init__(self, result: DiffResult, report: str) -> None:
        self.result = result
        super().__init__(report)


def diff_warnings(
    current: Iterable[str], baseline: Iterable[str], baseline_existed: bool = True
) -> DiffResult:
    """Return ``current - baseline``.

    Order follows *current* when it is a sequence and is sorted when it is a
    set, so reports are stable either way.  Duplicates are dropped.
    """
    if isinstance(current, (set, frozenset)):
        current = sorted(current)
    known = set(baseline)
    seen: set[str] = set()
    new_warnings: list[str] = []
    for warning in current:
        if warning in known or warning in seen:
            continue
        seen.add(warning)
        new_warnings.append(warning)
    return DiffResult(new_warnings=new_warnings, baseline_existed=baseline_existed)


def format_report(result: DiffResult, regenerate_hint: str = DEFAULT_REGENERATE_HINT) -> str:
    lines = [
        f"Found {len(result.new_warnings)} warnings behind baseline:",
        "",
        _GUIDANCE.format(hint=regenerate_hint),
    ]
    lines.extend(result.new_warnings)
    return "\n".join(lines)


class BaselineChecker:
    """Compares a scratch warning snapshot with the checked-in baseline."""

    def __init__(self, store: BaselineStore | None = None) -> None:
        self._store = store or BaselineStore()

    def compare(self, warning_file: Path, baseline_file: Path | None) -> DiffResult:
        current = self._store.read_lines(warning_file)
        if baseline_file is not None and self._store.exists(baseline_file):
            baseline = self._store.load(baseline_file)
            existed = True
        else:
            logger.warning("No baseline file detected. Assuming no baseline.")
            baseline = set()
            existed = False
        return diff_warnings(current, baseline, baseline_existed=existed)

    def check(
        self,
        warning_file: Path,
        baseline_file: Path | None,
        regenerate_hint: str = DEFAULT_REGENERATE_HINT,
    ) -> DiffResult:
        """Like :meth:`compare`, but raises :class:`BaselineCheckFailed` on new warnings."""
        result = self.compare(warning_file, baseline_file)
        if not result.passed:
            raise BaselineCheckFailed(result, format_report(result, regenerate_hint))
        return result
