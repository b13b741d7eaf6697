"""Per-build warning aggregation with exactly-once finalization.

One :class:`Aggregator` lives for one build invocation.  Compilation units
feed it diagnostics and completion notices from any thread, in any order.
When every required unit of a project has completed, the project's warning
set is handed to the finalizer exactly once.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from warnbase.models.warning import BaselineMode
from warnbase.parser.normalizer import DiagnosticNormalizer
from warnbase.service.events import UnitFinishedEvent, UnitStatus

logger = logging.getLogger("warnbase.aggregator")

Finalizer = Callable[[str, BaselineMode, frozenset[str]], Any]


class MissingListenerError(RuntimeError):
    """Finalization found no subscription to release (bookkeeping bug)."""


class Subscription:
    """Capability token for a project's diagnostic listener.

    Releasing it detaches the listener; it can be released only once, and
    extra :meth:`close` calls are no-ops.
    """

    def __init__(self, project: str, on_release: Callable[[Subscription], None]) -> None:
        self.project = project
        self._on_release = on_release
        self._lock = threading.Lock()
        self._released = False

    @property
    def active(self) -> bool:
        return not self._released

    def close(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._on_release(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "active" if self.active else "released"
        return f"Subscription({self.project!r}, {state})"


@dataclass
class CompletionState:
    """Completion bookkeeping for one project in one build invocation."""

    mode: BaselineMode
    required_units: set[str] = field(default_factory=set)
    completed_units: set[str] = field(default_factory=set)
    finalized: bool = False

    @property
    def is_write_mode(self) -> bool:
        return self.mode is BaselineMode.WRITE

    @property
    def is_check_mode(self) -> bool:
        return self.mode is BaselineMode.CHECK

    @property
    def complete(self) -> bool:
        return bool(self.required_units) and self.completed_units >= self.required_units


@dataclass
class _Project:
    lock: threading.Lock = field(default_factory=threading.Lock)
    warnings: set[str] = field(default_factory=set)
    normalizer: DiagnosticNormalizer = field(default_factory=DiagnosticNormalizer)
    state: CompletionState | None = None
    subscription: Subscription | None = None
    result: Any = None


class Aggregator:
    """Collects warnings per project and finalizes each project once.

    Thread-safe.  A registry lock guards the project table; each project has
    its own lock guarding its warning set and completion state.
    """

    def __init__(self, finalizer: Finalizer) -> None:
        self._finalizer = finalizer
        self._lock = threading.Lock()
        self._projects: dict[str, _Project] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._closed = False

    # -- registration --------------------------------------------------------

    def register_required_units(
        self,
        project: str,
        units: Iterable[str],
        mode: BaselineMode,
        normalizer: DiagnosticNormalizer | None = None,
    ) -> Subscription | None:
        """Declare the units that must finish before *project* is finalized.

        Repeated calls union the unit sets.  Returns the project's listener
        subscription, or ``None`` if there is nothing to wait for.
        """
        unit_set = set(units)
        entry = self._entry(project)
        with entry.lock:
            if entry.state is not None and entry.state.finalized:
                logger.warning("Project '%s' already finalized, ignoring units %s", project, sorted(unit_set))
                return None
            if entry.state is None:
                entry.state = CompletionState(mode=mode)
            elif entry.state.mode is not mode:
                raise ValueError(
                    f"Project '{project}' registered for {entry.state.mode}, not {mode}"
                )
            entry.state.required_units |= unit_set
            if normalizer is not None:
                entry.normalizer = normalizer
            if not entry.state.required_units:
                return None
            if entry.subscription is None:
                entry.subscription = self._subscribe(project)
            return entry.subscription

    def _subscribe(self, project: str) -> Subscription:
        subscription = Subscription(project, self._release)
        with self._lock:
            self._subscriptions[project] = subscription
        logger.debug("Listening for diagnostics of '%s'", project)
        return subscription

    def _release(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscriptions.get(subscription.project) is subscription:
                del self._subscriptions[subscription.project]
        logger.debug("Stopped listening for diagnostics of '%s'", subscription.project)

    def is_listening(self, project: str) -> bool:
        with self._lock:
            return project in self._subscriptions

    # -- inbound events ------------------------------------------------------

    def ingest_diagnostic(self, project: str, raw_line: str) -> bool:
        """Add one raw compiler line to *project*'s warning set.

        Returns ``True`` if the line was a warning and was recorded.
        """
        entry = self._entry(project)
        canonical = entry.normalizer.normalize(raw_line)
        if canonical is None:
            return False
        with entry.lock:
            if entry.subscription is None or not entry.subscription.active:
                logger.debug("No listener for '%s', dropping %s", project, canonical)
                return False
            entry.warnings.add(canonical)
        return True

    def notify_unit_finished(self, project: str, unit: str, status: UnitStatus) -> bool:
        """Record that *unit* finished; finalize if it was the last one.

        Returns ``True`` only for the call that performed finalization.
        """
        entry = self._entry(project)
        with entry.lock:
            state = entry.state
            if self._closed:
                logger.debug("Build closed, ignoring %s of '%s'", unit, project)
                return False
            if state is None or state.finalized or unit not in state.required_units:
                logger.debug("Ignoring %s of '%s' (%s)", unit, project, status)
                return False
            if not status.counts_toward_completion:
                logger.info("Unit %s of '%s' finished with %s", unit, project, status)
                return False
            state.completed_units.add(unit)
            if not state.complete:
                return False
            # Check-then-act happens under the project lock: only one caller gets here.
            state.finalized = True
            subscription = entry.subscription
            entry.subscription = None
            warnings = frozenset(entry.warnings)
            mode = state.mode

        if subscription is None:
            raise MissingListenerError(f"Listener added for {project} but was not removed")
        with subscription:
            result = self._finalizer(project, mode, warnings)
        with entry.lock:
            entry.result = result
        return True

    def on_event(self, event: UnitFinishedEvent) -> bool:
        return self.notify_unit_finished(event.project, event.unit, event.status)

    # -- queries -------------------------------------------------------------

    def warnings(self, project: str) -> frozenset[str]:
        entry = self._entry(project)
        with entry.lock:
            return frozenset(entry.warnings)

    def state(self, project: str) -> CompletionState | None:
        entry = self._entry(project)
        with entry.lock:
            return entry.state

    def is_finalized(self, project: str) -> bool:
        state = self.state(project)
        return state is not None and state.finalized

    def result(self, project: str) -> Any:
        """Whatever the finalizer returned for *project* (``None`` until finalized)."""
        entry = self._entry(project)
        with entry.lock:
            return entry.result

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Release outstanding subscriptions without finalizing (aborted build)."""
        with self._lock:
            self._closed = True
            outstanding = list(self._subscriptions.values())
            entries = list(self._projects.values())
        for entry in entries:
            with entry.lock:
                entry.subscription = None
        for subscription in outstanding:
            logger.info("Build ended before '%s' completed", subscription.project)
            subscription.close()

    def __enter__(self) -> Aggregator:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- internal ------------------------------------------------------------

    def _entry(self, project: str) -> _Project:
        with self._lock:
            entry = self._projects.get(project)
            if entry is None:
                entry = _Project()
                self._projects[project] = entry
            return entry
