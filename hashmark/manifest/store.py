# hashmark/manifest/store.py
"""
Manifest persistence.

The manifest is a flat JSON object mapping original filename to
fingerprinted filename:

    {
      "a.txt": "a.5d41402abc4b2a76b9719d911017c592.txt"
    }

Loading is lenient: a missing, empty or malformed file is treated as an
empty manifest so that corruption never blocks the pipeline. Saving writes
to a sibling temp file and renames it over the target.

Single-writer discipline is assumed: two processes writing the same
manifest path will lose each other's updates.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping

from hashmark.exceptions import ManifestLoadError, ManifestSaveError
from hashmark.logging.logger import get_logger
from hashmark.logging.tags import MANIFEST

logger = get_logger(__name__)

Manifest = Dict[str, str]

TEMP_SUFFIX = ".tmp"


class ManifestStore:
    """
    Loads and saves the manifest at a fixed path.

    Usage:
        store = ManifestStore("build/manifest.json")
        manifest = store.load()
        manifest["a.txt"] = "a.<digest>.txt"
        store.save(manifest)
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def temp_path(self) -> Path:
        """Temporary file written before the atomic rename."""
        return self._path.with_name(self._path.name + TEMP_SUFFIX)

    def load(self) -> Manifest:
        """
        Load the manifest. Never raises.

        Returns an empty dict when the file is absent, empty or invalid.
        """
        try:
            return self._read()
        except FileNotFoundError:
            logger.debug(f"{MANIFEST} No manifest at {self._path}, starting empty")
        except ManifestLoadError as e:
            logger.warning(f"{MANIFEST} Ignoring unreadable manifest {self._path}: {e}")
        except OSError as e:
            logger.warning(f"{MANIFEST} Could not read manifest {self._path}: {e}")
        return {}

    def _read(self) -> Manifest:
        raw = self._path.read_bytes()
        if not raw.strip():
            return {}

        try:
            data: Any = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            raise ManifestLoadError(str(e) or type(e).__name__) from e

        if not isinstance(data, dict):
            raise ManifestLoadError(
                f"expected a JSON object, got {type(data).__name__}"
            )

        manifest: Manifest = {}
        for key, value in data.items():
            if isinstance(value, str):
                manifest[key] = value
            else:
                logger.warning(f"{MANIFEST} Dropping non-string entry for {key!r}")
        return manifest

    def save(self, manifest: Mapping[str, str]) -> None:
        """
        Persist the manifest as indented JSON with sorted keys.

        Raises:
            ManifestSaveError: if the file cannot be written or replaced.
        """
        tmp = self.temp_path

        try:
            payload = json.dumps(dict(manifest), indent=2, sort_keys=True, ensure_ascii=False) + "\n"
            data = payload.encode("utf-8")
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except (OSError, ValueError) as e:
            try:
                tmp.unlink()
            except OSError:
                pass
            raise ManifestSaveError(f"Failed to write manifest {self._path}: {e}") from e

        logger.debug(f"{MANIFEST} Saved {len(manifest)} entries to {self._path}")


def load_manifest(path: str | Path) -> Manifest:
    """Convenience function to load a manifest."""
    return ManifestStore(path).load()


def save_manifest(path: str | Path, manifest: Mapping[str, str]) -> None:
    """Convenience function to save a manifest."""
    ManifestStore(path).save(manifest)


__all__ = ["Manifest", "ManifestStore", "load_manifest", "save_manifest"]
