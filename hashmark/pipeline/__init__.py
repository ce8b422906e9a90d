"""
Reconciliation pipeline.

Key components:
- Scanner: lists the input directory (or one reported file) and hashes candidates
- Differ: decides copy vs skip against the manifest
- Executor: runs one pass and persists the manifest
- Watcher: runs one pass per change event

Usage:
    from hashmark.pipeline import run_reconcile

    summary = run_reconcile(
        "assets",
        manifest_path="build/manifest.json",
        output_dir="build/assets",
    )
    print(summary)  # "scanned 10, copied 3, skipped 7, errors 0"
"""

from .differ import Differ, DiffResult, FileCandidate, compute_diff
from .executor import PassSummary, ReconcileExecutor, run_reconcile
from .scanner import FileScanner, ScannedFile, ScanResult, scan_directory
from .watcher import Watcher

__all__ = [
    # Scanner
    "ScannedFile",
    "ScanResult",
    "FileScanner",
    "scan_directory",
    # Differ
    "FileCandidate",
    "DiffResult",
    "Differ",
    "compute_diff",
    # Executor
    "PassSummary",
    "ReconcileExecutor",
    "run_reconcile",
    # Watch loop
    "Watcher",
]
