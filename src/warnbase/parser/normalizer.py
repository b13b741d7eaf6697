"""Compiler diagnostic lines -> canonical warning strings.

Two diagnostic grammars are understood::

    w: file:///abs/path/A.kt:6:20 Condition 'x != null' is always 'true'
    w: /abs/path/A.kt: (6, 20): Condition 'x != null' is always 'true'

The severity prefix is optional, but when present it must denote a warning.
Anything else is not a warning diagnostic and is skipped.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Iterable
from pathlib import PurePath, PurePosixPath
from urllib.parse import unquote, urlsplit

from warnbase.models.warning import WarningRecord

logger = logging.getLogger("warnbase.parser")

_SEVERITY = r"(?:(?P<severity>[A-Za-z]+):\s+)?"
# A location must end in a file extension so timestamps and task paths don't match.
_LOCATION = r"(?P<location>\S.*?\.[A-Za-z0-9]+)"

_COLON_RE = re.compile(
    rf"^{_SEVERITY}{_LOCATION}:(?P<line>\d+):(?P<column>\d+):?\s+(?P<message>\S.*)$"
)
_PAREN_RE = re.compile(
    rf"^{_SEVERITY}{_LOCATION}:\s*\((?P<line>\d+),\s*(?P<column>\d+)\):\s*(?P<message>\S.*)$"
)

_WARNING_SEVERITIES = frozenset({"w", "warn", "warning"})

# Two or more characters, so that ``C:/...`` is a drive letter and not a scheme.
# Matches both ``file:///abs`` and the single-slash ``file:/abs`` form.
_URI_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:/")
_DRIVE_RE = re.compile(r"^/?(?P<drive>[A-Za-z]):/")


class MalformedDiagnosticLine(ValueError):
    """Raised when a raw line is not a warning diagnostic."""


def to_portable_path(location: str | PurePath) -> str:
    """Strip any URI scheme and return the path with ``/`` separators.

    ``file:///C:/src/A.kt`` and ``C:\\src\\A.kt`` both become ``C:/src/A.kt``.
    """
    text = str(location).strip()
    if _URI_SCHEME_RE.match(text):
        text = unquote(urlsplit(text).path)
    text = text.replace("\\", "/")
    drive = _DRIVE_RE.match(text)
    if drive:
        text = f"{drive.group('drive').upper()}:/{text[drive.end():]}"
    portable = str(PurePosixPath(text))
    return "" if portable == "." else portable


def _is_absolute(portable: str) -> bool:
    return portable.startswith("/") or bool(_DRIVE_RE.match(portable))


class DiagnosticNormalizer:
    """Turns raw compiler output into :class:`WarningRecord` objects.

    Paths are made relative to the longest matching *source_roots* entry.
    Absolute paths outside every root are reduced to their file name so the
    baseline never depends on where the checkout lives.  Relative locations
    are resolved against *base_dir* (the project directory) before matching.
    """

    def __init__(
        self,
        source_roots: Iterable[str | PurePath] = (),
        base_dir: str | PurePath | None = None,
    ) -> None:
        roots = {to_portable_path(r).rstrip("/") for r in source_roots}
        self._base_dir = to_portable_path(base_dir).rstrip("/") if base_dir is not None else ""
        # Longest first: nested roots win over their parents.
        self._roots = sorted((r for r in roots if r), key=len, reverse=True)

    @property
    def source_roots(self) -> list[str]:
        return list(self._roots)

    def relativize(self, location: str) -> str:
        portable = to_portable_path(location)
        candidate = portable
        if self._base_dir and portable and not _is_absolute(portable):
            candidate = posixpath.normpath(f"{self._base_dir}/{portable}")
        for root in self._roots:
            if candidate.startswith(root + "/"):
                return candidate[len(root) + 1 :]
        if _is_absolute(portable):
            return PurePosixPath(portable).name
        return portable

    def parse(self, raw_line: str) -> WarningRecord:
        """Parse one diagnostic line.

        Raises :class:`MalformedDiagnosticLine` for anything that is not a
        warning in one of the supported grammars.
        """
        line = raw_line.strip()
        match = _COLON_RE.match(line) or _PAREN_RE.match(line)
        if match is None:
            raise MalformedDiagnosticLine(f"Not a diagnostic: {line!r}")
        severity = match.group("severity")
        if severity is not None and severity.lower() not in _WARNING_SEVERITIES:
            raise MalformedDiagnosticLine(f"Not a warning ({severity}): {line!r}")
        file_path = self.relativize(match.group("location"))
        if not file_path:
            raise MalformedDiagnosticLine(f"Empty path in diagnostic: {line!r}")
        return WarningRecord(
            file_path=file_path,
            line=int(match.group("line")),
            column=int(match.group("column")),
            message=match.group("message").strip(),
        )

    def normalize(self, raw_line: str) -> str | None:
        """Return the canonical warning string, or ``None`` if *raw_line* is skipped."""
        try:
            return self.parse(raw_line).canonical
        except MalformedDiagnosticLine as exc:
            logger.debug("Skipping line: %s", exc)
            return None

    def normalize_all(self, raw_lines: Iterable[str]) -> set[str]:
        result: set[str] = set()
        for raw in raw_lines:
            canonical = self.normalize(raw)
            if canonical is not None:
                result.add(canonical)
        return result
