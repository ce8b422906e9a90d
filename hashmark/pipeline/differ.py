# hashmark/pipeline/differ.py
"""
Diff computation against the manifest.

Decides, for each scanned file, whether its fingerprinted name is already
recorded in the manifest (skip) or not (copy).

This module ONLY computes actions - it does NOT execute them.
Execution is handled by the executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping

from hashmark.fingerprint.naming import fingerprint_name
from hashmark.logging.logger import get_logger
from hashmark.logging.tags import DIFF
from hashmark.pipeline.scanner import ScannedFile

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileCandidate:
    """A scanned file together with its derived output name."""

    name: str
    path: str
    size_bytes: int
    digest: str
    fingerprinted_name: str

    @classmethod
    def from_scanned(cls, scanned: ScannedFile) -> "FileCandidate":
        return cls(
            name=scanned.name,
            path=scanned.path,
            size_bytes=scanned.size_bytes,
            digest=scanned.digest,
            fingerprinted_name=fingerprint_name(scanned.name, scanned.digest),
        )


@dataclass
class DiffResult:
    """
    Result of diff computation.

    - to_copy: new files, or files whose content changed since the manifest entry
    - to_skip: files whose manifest entry already matches
    """

    to_copy: List[FileCandidate] = field(default_factory=list)
    to_skip: List[FileCandidate] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"copy={len(self.to_copy)}, skip={len(self.to_skip)}"


class Differ:
    """
    Computes the action plan for one pass.

    Usage:
        differ = Differ(manifest)
        diff = differ.compute_diff(scan_result.files)
    """

    def __init__(self, manifest: Mapping[str, str]) -> None:
        self._manifest = manifest

    def compute_diff(self, scanned_files: List[ScannedFile], force: bool = False) -> DiffResult:
        """
        Args:
            scanned_files: Files from the scanner.
            force: If True, copy every file regardless of the manifest.
        """
        result = DiffResult()

        for scanned in scanned_files:
            candidate = FileCandidate.from_scanned(scanned)

            if not force and self._manifest.get(candidate.name) == candidate.fingerprinted_name:
                logger.debug(f"{DIFF} Unchanged {candidate.name}")
                result.to_skip.append(candidate)
            else:
                result.to_copy.append(candidate)

        logger.info(f"{DIFF} Diff computed: {result.summary}")
        return result


def compute_diff(
    scanned_files: List[ScannedFile],
    manifest: Mapping[str, str],
    force: bool = False,
) -> DiffResult:
    """Convenience function to compute diff."""
    return Differ(manifest).compute_diff(scanned_files, force=force)


__all__ = ["FileCandidate", "DiffResult", "Differ", "compute_diff"]
