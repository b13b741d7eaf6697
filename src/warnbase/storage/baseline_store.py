"""Line-delimited baseline files with sorted-set semantics."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger("warnbase.storage")

DEFAULT_PREFIX = "warning-baseline"


class BaselineReadError(OSError):
    """Raised when an existing baseline file cannot be read."""


class BaselineWriteError(OSError):
    """Raised when a baseline file cannot be written or deleted."""


def baseline_file_name(variant: str = "", target: str = "", prefix: str = DEFAULT_PREFIX) -> str:
    """``warning-baseline[-<variant>][-<target>].txt``"""
    name = prefix
    if variant:
        name += f"-{variant}"
    if target:
        name += f"-{target}"
    return f"{name}.txt"


class BaselineStore:
    """Reads and writes baseline and scratch warning files.

    Files are UTF-8, one canonical warning per line, sorted, with a trailing
    newline, so that writing the same set twice yields identical bytes.
    """

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_lines(self, path: Path) -> list[str]:
        """Return the non-blank lines of *path* in file order (empty if missing)."""
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise BaselineReadError(f"Cannot read baseline {path}: {exc}") from exc
        return [line for line in text.splitlines() if line.strip()]

    def load(self, path: Path) -> set[str]:
        return set(self.read_lines(path))

    def save(self, path: Path, warnings: Iterable[str]) -> bool:
        """Write *warnings* to *path*; an empty set deletes the file instead.

        Returns ``True`` if a file was written, ``False`` if it was removed
        (or never existed).
        """
        lines = sorted(set(warnings))
        if not lines:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise BaselineWriteError(f"Cannot delete baseline {path}: {exc}") from exc
            logger.info("No warnings, removed %s", path)
            return False
        content = "\n".join(lines) + "\n"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps "\n" on every platform; the file is checked in.
            with path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(content)
        except OSError as exc:
            raise BaselineWriteError(f"Cannot write baseline {path}: {exc}") from exc
        logger.info("Wrote %d warnings to %s", len(lines), path)
        return True

    def remove_all(self, prefix: str, project_dir: Path, build_dir: Path | None = None) -> list[Path]:
        """Delete every ``<prefix>*`` file in *project_dir* and all of *build_dir*.

        Best effort: failures are logged and skipped. Returns the files removed
        from *project_dir*.
        """
        removed: list[Path] = []
        if project_dir.is_dir():
            for entry in sorted(project_dir.iterdir()):
                if not entry.name.startswith(prefix) or not entry.is_file():
                    continue
                try:
                    entry.unlink()
                except OSError as exc:
                    logger.warning("Could not delete %s: %s", entry, exc)
                    continue
                removed.append(entry)

        if build_dir is not None and build_dir.exists():

            def _on_error(func, failed_path, exc: BaseException) -> None:  # noqa: ANN001
                logger.warning("Could not delete %s: %s", failed_path, exc)

            shutil.rmtree(build_dir, onexc=_on_error)
        return removed
