# hashmark/exceptions.py
"""
Exception hierarchy for hashmark.

Only ConfigError and EnumerationError are fatal to a run. Everything else
is recorded per file (or per pass) and the pipeline keeps going.
"""

from __future__ import annotations


class HashmarkError(Exception):
    """Base class for all hashmark errors."""


class ConfigError(HashmarkError):
    """Invalid or incomplete configuration. Raised before any I/O."""


class EnumerationError(HashmarkError):
    """The input directory could not be listed."""

    def __init__(self, directory: str, cause: Exception | None = None) -> None:
        self.directory = directory
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to read {directory}{detail}")


class FileProcessingError(HashmarkError):
    """A single candidate failed to hash or copy."""

    def __init__(self, path: str, stage: str, cause: Exception | None = None) -> None:
        self.path = path
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {stage} {path}{detail}")


class ContentChangedError(HashmarkError):
    """A source file changed between hashing and copying."""

    def __init__(self, path: str, expected: str, actual: str) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{path} changed while copying (hashed {expected}, copied {actual})"
        )


class ManifestLoadError(HashmarkError):
    """The manifest file exists but could not be decoded."""


class ManifestSaveError(HashmarkError):
    """The manifest could not be persisted."""


__all__ = [
    "HashmarkError",
    "ConfigError",
    "EnumerationError",
    "FileProcessingError",
    "ContentChangedError",
    "ManifestLoadError",
    "ManifestSaveError",
]
