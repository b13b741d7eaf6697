"""Compiler diagnostic and project config parsing for warnbase."""

from warnbase.parser.config_loader import ProjectConfigError, load_project_config
from warnbase.parser.normalizer import DiagnosticNormalizer, MalformedDiagnosticLine

__all__ = [
    "DiagnosticNormalizer",
    "MalformedDiagnosticLine",
    "ProjectConfigError",
    "load_project_config",
]
