# hashmark/pipeline/executor.py
"""
Executor for one reconciliation pass.

Orchestrates:
1. Load manifest (fresh every pass)
2. Scan candidates (whole directory, or one reported file)
3. Compute diff against the manifest
4. Copy new/changed files under their fingerprinted names, re-checking
   the digest of the bytes actually copied
5. Record manifest entries for successful copies only
6. Save manifest (always, even when nothing changed)

Nothing is ever deleted: stale manifest entries and superseded
fingerprinted copies are kept.
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from hashmark.exceptions import ContentChangedError, FileProcessingError, ManifestSaveError
from hashmark.fingerprint.copier import copy_file
from hashmark.logging.logger import get_logger
from hashmark.logging.tags import COPY, MANIFEST, PASS, SCAN
from hashmark.manifest.store import Manifest, ManifestStore
from hashmark.pipeline.differ import Differ, FileCandidate
from hashmark.pipeline.scanner import FileScanner, ScanResult

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# Copies land under this suffix and are renamed once their digest is verified.
PARTIAL_SUFFIX = ".partial"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"{COPY} Could not remove partial copy {path}: {e}")


@dataclass
class PassSummary:
    """Summary of one reconciliation pass."""

    scanned: int = 0
    copied: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[str] = field(default_factory=list)
    manifest_saved: bool = False
    save_error: Optional[str] = None
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def __str__(self) -> str:
        base = (
            f"scanned {self.scanned}, copied {self.copied}, "
            f"skipped {self.skipped}, errors {self.errors}"
        )
        if not self.manifest_saved:
            base += ", manifest NOT saved"
        return base


class ReconcileExecutor:
    """
    Runs reconciliation passes against one manifest and output directory.

    Usage:
        executor = ReconcileExecutor(
            manifest_store=ManifestStore("build/manifest.json"),
            output_dir="build/assets",
        )

        summary = executor.run("assets")            # batch pass
        summary = executor.run_one("assets", "a.txt")  # watch pass
    """

    def __init__(
        self,
        manifest_store: ManifestStore,
        output_dir: str | Path,
        *,
        workers: int = 1,
        exclude: Iterable[str | Path] = (),
    ) -> None:
        """
        Args:
            manifest_store: Store for the manifest file.
            output_dir: Directory receiving fingerprinted copies.
            workers: Threads for hashing and copying. 1 means sequential.
            exclude: Extra absolute paths never treated as candidates.
        """
        self._store = manifest_store
        self._output_dir = Path(output_dir)
        self._workers = max(1, workers)
        self._scanner = FileScanner(
            exclude=[manifest_store.path, manifest_store.temp_path, *exclude],
            workers=self._workers,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def run(
        self,
        source: str | Path,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PassSummary:
        """
        Run a batch pass over every file in `source`.

        Args:
            source: Input directory.
            force: If True, copy every file regardless of the manifest.
            on_progress: Optional callback(current, total, filename).

        Raises:
            EnumerationError: if `source` cannot be listed.
        """
        summary = PassSummary()
        manifest = self._store.load()

        logger.info(f"{SCAN} Scanning {source}...")
        scan_result = self._scanner.scan(source)

        return self._reconcile(manifest, scan_result, summary, force, on_progress)

    def run_one(self, source: str | Path, filename: str, force: bool = False) -> PassSummary:
        """
        Run a pass for a single file reported by a change event.

        Events for files that vanished or are directories produce an empty
        pass; the manifest is still re-saved.
        """
        summary = PassSummary()
        manifest = self._store.load()
        scan_result = self._scanner.scan_one(source, filename)
        return self._reconcile(manifest, scan_result, summary, force, None)

    def _reconcile(
        self,
        manifest: Manifest,
        scan_result: ScanResult,
        summary: PassSummary,
        force: bool,
        on_progress: Optional[ProgressCallback],
    ) -> PassSummary:
        summary.scanned = scan_result.total_scanned
        for path, error in scan_result.errors:
            summary.errors += 1
            summary.error_details.append(f"Hash error: {path}: {error}")

        diff = Differ(manifest).compute_diff(scan_result.files, force=force)
        summary.skipped = len(diff.to_skip)

        if diff.to_copy:
            self._copy_all(diff.to_copy, manifest, summary, on_progress)

        logger.debug(f"{MANIFEST} Generated mapping: {manifest}")
        self._save(manifest, summary)

        summary.finished_at = _utcnow()
        logger.info(f"{PASS} Pass complete: {summary}")
        return summary

    def _copy_all(
        self,
        candidates: List[FileCandidate],
        manifest: Manifest,
        summary: PassSummary,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # Each copy below fails and is reported individually.
            logger.error(f"{COPY} Cannot create output directory {self._output_dir}: {e}")

        lock = threading.Lock()
        total = len(candidates)

        def process(candidate: FileCandidate) -> Tuple[FileCandidate, Optional[FileProcessingError]]:
            try:
                self._copy(candidate)
            except FileProcessingError as e:
                return candidate, e
            # Commit only after the copy landed on disk.
            with lock:
                manifest[candidate.name] = candidate.fingerprinted_name
            return candidate, None

        if self._workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as ex:
                futs = [ex.submit(process, c) for c in candidates]
                outcomes = (fut.result() for fut in as_completed(futs))
                self._collect(outcomes, total, summary, on_progress)
        else:
            outcomes = (process(c) for c in candidates)
            self._collect(outcomes, total, summary, on_progress)

        if on_progress:
            on_progress(total, total, "Done")

    def _collect(self, outcomes, total: int, summary: PassSummary, on_progress) -> None:
        for done, (candidate, error) in enumerate(outcomes, start=1):
            if error is None:
                summary.copied += 1
                logger.info(f"{COPY} Copied {candidate.name} to {candidate.fingerprinted_name}")
            else:
                summary.errors += 1
                summary.error_details.append(f"Copy error: {candidate.path}: {error.cause}")
                logger.warning(f"{COPY} {error}")
            if on_progress:
                on_progress(done, total, candidate.name)

    def _copy(self, candidate: FileCandidate) -> None:
        dst = self._output_dir / candidate.fingerprinted_name
        partial = self._output_dir / f".{candidate.fingerprinted_name}{PARTIAL_SUFFIX}"
        try:
            _, digest = copy_file(candidate.path, partial)
            if digest != candidate.digest:
                raise ContentChangedError(candidate.path, candidate.digest, digest)
            os.replace(partial, dst)
        except (OSError, ContentChangedError) as e:
            _discard(partial)
            raise FileProcessingError(candidate.name, "copy", e) from e

    def _save(self, manifest: Manifest, summary: PassSummary) -> None:
        try:
            self._store.save(manifest)
        except ManifestSaveError as e:
            summary.manifest_saved = False
            summary.save_error = str(e)
            logger.error(f"{MANIFEST} {e}")
            return
        summary.manifest_saved = True


def run_reconcile(
    source: str | Path,
    *,
    manifest_path: str | Path,
    output_dir: str | Path,
    force: bool = False,
    workers: int = 1,
    on_progress: Optional[ProgressCallback] = None,
) -> PassSummary:
    """
    Convenience function to run one batch pass.

    Args:
        source: Input directory.
        manifest_path: JSON manifest file.
        output_dir: Directory receiving fingerprinted copies.
        force: If True, copy everything regardless of the manifest.
        workers: Threads for hashing and copying.
        on_progress: Optional callback(current, total, filename).
    """
    executor = ReconcileExecutor(
        manifest_store=ManifestStore(manifest_path),
        output_dir=output_dir,
        workers=workers,
    )
    return executor.run(source, force=force, on_progress=on_progress)


__all__ = ["PassSummary", "ReconcileExecutor", "run_reconcile"]
