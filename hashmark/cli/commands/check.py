# hashmark/cli/commands/check.py
"""
Check that every manifest entry has its fingerprinted file.

Read-only: nothing is copied, rewritten or deleted.

Usage:
    hashmark check --output-json build/manifest.json --output-dir build/assets
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import typer

from hashmark.cli.ui import ui
from hashmark.manifest.store import ManifestStore


def find_missing(manifest: Dict[str, str], output_dir: Path) -> List[str]:
    """Original names whose fingerprinted file is absent from `output_dir`."""
    return sorted(name for name, target in manifest.items() if not (output_dir / target).is_file())


def command(
    manifest_path: Path = typer.Option(
        ...,
        "--output-json",
        "--manifest",
        "-m",
        help="JSON manifest to check.",
    ),
    output_dir: Path = typer.Option(
        ...,
        "--output-dir",
        "-o",
        help="Directory holding fingerprinted copies.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="List present entries too.",
    ),
) -> None:
    """Report manifest entries whose fingerprinted file is missing."""
    manifest = ManifestStore(manifest_path).load()
    missing = set(find_missing(manifest, output_dir))

    for name in sorted(manifest):
        ok = name not in missing
        if verbose or not ok:
            ui.status(name, ok, manifest[name])

    if missing:
        ui.error(f"{len(missing)} of {len(manifest)} entries missing from {output_dir}")
        raise typer.Exit(1)

    ui.success(f"All {len(manifest)} entries present in {output_dir}")
