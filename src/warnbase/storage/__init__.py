"""On-disk persistence of warning baselines."""

from warnbase.storage.baseline_store import (
    BaselineReadError,
    BaselineStore,
    BaselineWriteError,
    baseline_file_name,
)

__all__ = [
    "BaselineReadError",
    "BaselineStore",
    "BaselineWriteError",
    "baseline_file_name",
]
