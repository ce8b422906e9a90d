"""
hashmark: content-fingerprinted asset copies with a JSON manifest.

Usage:
    from hashmark import run_reconcile

    summary = run_reconcile(
        "assets",
        manifest_path="build/manifest.json",
        output_dir="build/assets",
    )
"""

__version__ = "0.1.0"

from hashmark.manifest.store import ManifestStore
from hashmark.pipeline import PassSummary, ReconcileExecutor, Watcher, run_reconcile

__all__ = [
    "__version__",
    "ManifestStore",
    "PassSummary",
    "ReconcileExecutor",
    "Watcher",
    "run_reconcile",
]
