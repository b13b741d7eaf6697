"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from warnbase.models.project import CompileUnitKind


class Settings(BaseSettings):
    """Configuration for the warnbase command line.

    Values are read from ``WARNBASE_*`` environment variables and from a
    ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="WARNBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared
    log_level: str = "INFO"

    # Files
    baseline_file_prefix: str = "warning-baseline"
    build_dir_name: str = "build"
    scratch_dir_name: str = "kotlin-warning"
    project_config_name: str = "warnbase.yaml"

    # Variants
    default_variant: str = "release"
    supported_variants: list[str] = ["staging", "debug", "release"]

    # Compilation units that must finish before finalizing
    compile_units: list[CompileUnitKind] = [CompileUnitKind.MAIN]

    # Log ingestion
    max_workers: int = 4
