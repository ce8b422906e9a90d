# hashmark/pipeline/scanner.py
"""
Candidate enumeration and hashing.

The scanner turns a directory (batch) or one reported filename (watch)
into ScannedFile records carrying the content digest. Hash failures are
per-file and end up in ScanResult.errors; only a directory that cannot be
listed at all raises.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from hashmark.exceptions import EnumerationError
from hashmark.fingerprint.hashing import hash_file
from hashmark.logging.logger import get_logger
from hashmark.logging.tags import SCAN

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScannedFile:
    """A hashed candidate file."""

    name: str  # Base name, also the manifest key
    path: str  # Absolute path used for I/O
    size_bytes: int
    digest: str  # Lowercase hex content hash


@dataclass
class ScanResult:
    """Result of one scan."""

    files: List[ScannedFile] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total_scanned(self) -> int:
        """Candidates seen, including the ones that failed to hash."""
        return len(self.files) + len(self.errors)


class FileScanner:
    """
    Enumerates and hashes candidate files.

    Usage:
        scanner = FileScanner(exclude=["/data/in/manifest.json"])
        result = scanner.scan("/data/in")
        for f in result.files:
            print(f.name, f.digest)
    """

    def __init__(self, exclude: Iterable[str | Path] = (), workers: int = 1) -> None:
        """
        Args:
            exclude: Absolute paths never treated as candidates
                     (the manifest and its temp file when they sit in the input dir).
            workers: Threads used for hashing in batch scans.
        """
        self._exclude: Set[str] = {os.path.abspath(p) for p in exclude}
        self._workers = max(1, workers)

    def scan(self, source: str | Path) -> ScanResult:
        """
        Scan every non-directory entry of `source` (non-recursive).

        Entries are processed in directory-listing order.

        Raises:
            EnumerationError: if `source` cannot be listed.
        """
        root = os.path.abspath(source)
        try:
            with os.scandir(root) as it:
                entries = [e for e in it if not _is_dir(e)]
        except OSError as e:
            raise EnumerationError(root, e) from e

        paths = [e.path for e in entries if os.path.abspath(e.path) not in self._exclude]
        logger.info(f"{SCAN} Found {len(paths)} files in {root}")

        result = ScanResult()
        if self._workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as ex:
                outcomes = list(ex.map(_hash_one, paths))
        else:
            outcomes = [_hash_one(p) for p in paths]

        for path, scanned, error in outcomes:
            if scanned is not None:
                result.files.append(scanned)
            else:
                result.errors.append((path, error))
        return result

    def scan_one(self, source: str | Path, filename: str) -> ScanResult:
        """
        Scan a single reported filename inside `source`.

        A name that no longer exists, is a directory, or is excluded yields
        an empty result without error.
        """
        path = os.path.join(os.path.abspath(source), filename)
        if os.path.abspath(path) in self._exclude:
            logger.debug(f"{SCAN} Ignoring excluded path {path}")
            return ScanResult()

        if os.path.isdir(path) or not os.path.exists(path):
            logger.debug(f"{SCAN} Discarding event for {filename}")
            return ScanResult()

        result = ScanResult()
        _, scanned, error = _hash_one(path)
        if scanned is not None:
            result.files.append(scanned)
        else:
            result.errors.append((path, error))
        return result


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def _hash_one(path: str) -> Tuple[str, Optional[ScannedFile], str]:
    name = os.path.basename(path)
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        # Undecodable bytes arrive surrogate-escaped and cannot be stored in JSON.
        shown = _display_path(path)
        logger.warning(f"{SCAN} Skipping {shown}: filename is not valid UTF-8")
        return shown, None, "filename is not valid UTF-8"

    try:
        size = os.stat(path).st_size
        digest = hash_file(path)
    except OSError as e:
        logger.warning(f"{SCAN} Failed to hash {name}: {e}")
        return path, None, str(e)

    return (
        path,
        ScannedFile(
            name=name,
            path=path,
            size_bytes=size,
            digest=digest,
        ),
        "",
    )


def _display_path(path: str) -> str:
    """Printable form of a path whose bytes may not decode as UTF-8."""
    return os.fsencode(path).decode("utf-8", "backslashreplace")


def scan_directory(source: str | Path, exclude: Iterable[str | Path] = ()) -> ScanResult:
    """Convenience function to scan a directory."""
    return FileScanner(exclude=exclude).scan(source)


__all__ = ["ScannedFile", "ScanResult", "FileScanner", "scan_directory"]
