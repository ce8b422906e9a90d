# hashmark/core/config/schema.py
"""
Pydantic schema for hashmark configuration.

Rules:
- Strict validation
- No unknown keys
- Paths are optional here; ConfigError is raised for missing ones
  by validate_required() so the CLI can report all of them at once
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hashmark.exceptions import ConfigError

REQUIRED_FIELDS = ("input_dir", "manifest_path", "output_dir")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"

    model_config = ConfigDict(extra="forbid")

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class HashmarkConfig(BaseModel):
    """
    Complete configuration for a hashmark run.

    Examples:
        >>> config = HashmarkConfig(
        ...     input_dir="assets",
        ...     manifest_path="build/manifest.json",
        ...     output_dir="build/assets",
        ... )
        >>> config.validate_required()
    """

    input_dir: Path | None = Field(default=None, description="Directory to scan")
    manifest_path: Path | None = Field(default=None, description="JSON manifest file")
    output_dir: Path | None = Field(
        default=None, description="Directory receiving fingerprinted copies"
    )

    watch: bool = Field(default=False, description="Re-run on file changes")
    initial_scan: bool = Field(
        default=False, description="Run one batch pass before watching"
    )
    force: bool = Field(default=False, description="Copy every file regardless of manifest")
    workers: int = Field(default=1, ge=1, description="Threads for hashing and copying")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")

    def missing_required(self) -> List[str]:
        """Names of required parameters that are not set."""
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]

    def validate_required(self) -> "HashmarkConfig":
        missing = self.missing_required()
        if missing:
            raise ConfigError(
                "Missing required parameter(s): " + ", ".join(missing)
            )
        return self


__all__ = ["HashmarkConfig", "LoggingConfig", "REQUIRED_FIELDS"]
