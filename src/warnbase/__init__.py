"""warnbase: compiler warning baselines for incremental builds."""

__version__ = "0.3.0"
