"""Build-invocation services: warning aggregation and finalization."""

from warnbase.service.aggregator import Aggregator, MissingListenerError, Subscription
from warnbase.service.events import UnitFinishedEvent, UnitStatus
from warnbase.service.finalizer import BaselineFinalizer

__all__ = [
    "Aggregator",
    "BaselineFinalizer",
    "MissingListenerError",
    "Subscription",
    "UnitFinishedEvent",
    "UnitStatus",
]
