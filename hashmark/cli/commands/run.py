# hashmark/cli/commands/run.py
"""
Fingerprint command.

Usage:
    hashmark run --input-dir assets --output-json build/manifest.json --output-dir build/assets
    hashmark run -i assets -m build/manifest.json -o build/assets --watch
    hashmark run --config hashmark.yaml
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import typer

from hashmark.cli.ui import ui
from hashmark.core.config import HashmarkConfig, load_config
from hashmark.exceptions import ConfigError, EnumerationError
from hashmark.logging.logger import configure_logging, get_logger
from hashmark.logging.tags import CLI
from hashmark.manifest.store import ManifestStore
from hashmark.pipeline.executor import PassSummary, ReconcileExecutor
from hashmark.pipeline.watcher import Watcher
from hashmark.watch.source import WatchdogEventSource

logger = get_logger(__name__)

USAGE = (
    "Usage: hashmark run --input-dir <input_dir> --output-json <output_json> "
    "--output-dir <output_dir> [--watch]"
)


def command(
    input_dir: Optional[Path] = typer.Option(
        None,
        "--input-dir",
        "-i",
        help="Directory of files to fingerprint.",
    ),
    manifest_path: Optional[Path] = typer.Option(
        None,
        "--output-json",
        "--manifest",
        "-m",
        help="JSON manifest mapping original to fingerprinted names.",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory receiving fingerprinted copies.",
    ),
    watch: bool = typer.Option(
        False,
        "--watch",
        "-w",
        help="Keep running and re-process files as they change.",
    ),
    initial_scan: bool = typer.Option(
        False,
        "--initial-scan",
        help="In watch mode, process the whole directory once before waiting.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Copy every file even if the manifest is up to date.",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        help="Threads for hashing and copying.",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML config file (defaults to $HASHMARK_CONFIG).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="DEBUG, INFO, WARNING or ERROR.",
    ),
) -> None:
    """
    Fingerprint files and update the manifest.

    Each file in the input directory is hashed and copied to the output
    directory as <stem>.<digest>.<ext>. Files whose manifest entry is
    already current are skipped. Nothing is ever deleted.

    Examples:
        hashmark run -i assets -m build/manifest.json -o build/assets
        hashmark run -i assets -m build/manifest.json -o build/assets --watch
    """
    overrides = {
        "input_dir": input_dir,
        "manifest_path": manifest_path,
        "output_dir": output_dir,
        "watch": True if watch else None,
        "initial_scan": True if initial_scan else None,
        "force": True if force else None,
        "workers": workers,
        "logging": {"level": log_level} if log_level else None,
    }

    try:
        cfg = load_config(config_path, overrides=overrides).validate_required()
    except ConfigError as e:
        ui.error(str(e))
        ui.info(USAGE)
        raise typer.Exit(2)

    configure_logging(cfg.logging.level)
    logger.debug(f"{CLI} Resolved config: {cfg.model_dump()}")

    executor = ReconcileExecutor(
        manifest_store=ManifestStore(cfg.manifest_path),
        output_dir=cfg.output_dir,
        workers=cfg.workers,
    )

    if cfg.watch:
        _watch(cfg, executor)
    else:
        _batch(cfg, executor)


def _batch(cfg: HashmarkConfig, executor: ReconcileExecutor) -> None:
    ui.header("hashmark", f"{cfg.input_dir} -> {cfg.output_dir}")

    try:
        summary = executor.run(cfg.input_dir, force=cfg.force)
    except EnumerationError as e:
        ui.error(str(e))
        raise typer.Exit(1)

    _display_summary(summary)


def _watch(cfg: HashmarkConfig, executor: ReconcileExecutor) -> None:
    ignore = _manifest_names_in(cfg.input_dir, cfg.manifest_path)
    source = WatchdogEventSource(cfg.input_dir, ignore_names=ignore)
    watcher = Watcher(
        executor,
        source,
        cfg.input_dir,
        initial_scan=cfg.initial_scan,
        force=cfg.force,
        on_pass=_report_pass,
    )

    ui.header("hashmark (watch)", f"{cfg.input_dir} -> {cfg.output_dir}")
    ui.info("Press Ctrl+C to stop")

    try:
        passes = watcher.run()
    except EnumerationError as e:
        ui.error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        watcher.stop()
        ui.info("Stopped.")
        return

    ui.info(f"Watch ended after {passes} pass(es).")


def _manifest_names_in(input_dir: Path, manifest_path: Path) -> set[str]:
    """Manifest file names to ignore when the manifest lives in the watched dir."""
    store = ManifestStore(manifest_path)
    if os.path.abspath(store.path.parent) != os.path.abspath(input_dir):
        return set()
    return {store.path.name, store.temp_path.name}


def _report_pass(filename: Optional[str], summary: PassSummary) -> None:
    label = filename or "initial scan"
    if summary.errors or not summary.manifest_saved:
        ui.warning(f"{label}: {summary}")
        for detail in summary.error_details:
            ui.info(f"  {detail}")
    elif summary.copied:
        ui.success(f"{label}: {summary}")
    else:
        ui.info(f"{label}: {summary}")


def _display_summary(summary: PassSummary) -> None:
    lines = [
        f"Scanned: {summary.scanned}",
        f"Copied:  {summary.copied}",
        f"Skipped: {summary.skipped}",
        f"Errors:  {summary.errors}",
        f"Time:    {summary.duration_seconds:.2f}s",
    ]
    if summary.save_error:
        lines.append(f"Manifest: NOT saved ({summary.save_error})")
    else:
        lines.append("Manifest: saved")

    ok = summary.errors == 0 and summary.manifest_saved
    ui.summary_panel(
        "\n".join(lines),
        title="Done" if ok else "Done with errors",
        style="green" if ok else "yellow",
    )

    for detail in summary.error_details:
        ui.warning(detail)
