# hashmark/cli/commands/show.py
"""
Show the manifest.

Usage:
    hashmark show --output-json build/manifest.json
    hashmark show -m build/manifest.json --json
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from hashmark.cli.ui import ui
from hashmark.manifest.store import ManifestStore


def command(
    manifest_path: Path = typer.Option(
        ...,
        "--output-json",
        "--manifest",
        "-m",
        help="JSON manifest to display.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print raw JSON instead of a table.",
    ),
) -> None:
    """Print the manifest entries, sorted by original name."""
    manifest = ManifestStore(manifest_path).load()

    if as_json:
        typer.echo(json.dumps(manifest, indent=2, sort_keys=True))
        return

    if not manifest:
        ui.info(f"No entries in {manifest_path}")
        return

    ui.table(
        ["Original", "Fingerprinted"],
        sorted(manifest.items()),
        title=str(manifest_path),
    )
