"""Loads the optional per-project ``warnbase.yaml``."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from warnbase.models.project import ProjectConfig


class ProjectConfigError(ValueError):
    """Raised when a project config file exists but cannot be used."""


def load_project_config(path: Path) -> ProjectConfig:
    """Read *path* into a :class:`ProjectConfig`.

    A missing file yields the default config.
    """
    if not path.is_file():
        return ProjectConfig()
    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.load(handle)
    except (OSError, YAMLError) as exc:
        raise ProjectConfigError(f"Cannot read {path}: {exc}") from exc
    if data is None:
        return ProjectConfig()
    if not isinstance(data, dict):
        raise ProjectConfigError(f"{path}: expected a mapping at the top level")
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ProjectConfigError(f"{path}: {exc}") from exc
