"""The one-time write-or-snapshot action run when a project's units are done."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from warnbase.models.result import FinalizationResult
from warnbase.models.warning import BaselineMode
from warnbase.storage.baseline_store import BaselineStore

logger = logging.getLogger("warnbase.finalizer")


@dataclass(frozen=True)
class ProjectFiles:
    """Where one project's baseline and scratch snapshot live."""

    baseline_file: Path
    scratch_file: Path


class BaselineFinalizer:
    """Persists a project's aggregated warnings.

    Write mode replaces the baseline with the current warnings.  Check mode
    stores them as the scratch snapshot that the check step compares against
    the baseline.  Either way an empty set removes the file.
    """

    def __init__(self, store: BaselineStore | None = None) -> None:
        self._store = store or BaselineStore()
        self._lock = threading.Lock()
        self._files: dict[str, ProjectFiles] = {}

    def register(self, project: str, files: ProjectFiles) -> None:
        with self._lock:
            self._files[project] = files

    def files_for(self, project: str) -> ProjectFiles:
        with self._lock:
            try:
                return self._files[project]
            except KeyError:
                raise KeyError(f"No baseline files registered for project '{project}'") from None

    def __call__(
        self, project: str, mode: BaselineMode, warnings: frozenset[str]
    ) -> FinalizationResult:
        files = self.files_for(project)
        path = files.baseline_file if mode is BaselineMode.WRITE else files.scratch_file
        written = self._store.save(path, warnings)
        logger.info(
            "Finalized '%s' (%s): %d warnings -> %s",
            project, mode, len(warnings), path if written else "no file",
        )
        return FinalizationResult(
            project=project,
            mode=mode,
            path=path,
            warning_count=len(warnings),
            deleted=not written,
        )
