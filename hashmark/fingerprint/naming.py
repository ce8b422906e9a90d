# hashmark/fingerprint/naming.py
"""
Fingerprinted filename derivation.

Rule (pinned by tests):
    split once at the last "." of the name
    "app.min.js", d  -> "app.min.<d>.js"
    "README",     d  -> "README.<d>"        (no trailing dot)
    "a.",         d  -> "a.<d>"
    ".env",       d  -> ".<d>.env"
"""

from __future__ import annotations

import os
from typing import Tuple


def split_name(filename: str) -> Tuple[str, str]:
    """Split a base name into (stem, ext). ext has no leading dot."""
    stem, sep, ext = filename.rpartition(".")
    if not sep:
        return filename, ""
    return stem, ext


def fingerprint_name(filename: str, digest: str) -> str:
    """Embed `digest` into `filename` before its extension."""
    if not filename:
        raise ValueError("filename must not be empty")
    if "/" in filename or os.sep in filename:
        raise ValueError(f"filename must be a base name, got {filename!r}")
    if not digest:
        raise ValueError("digest must not be empty")

    stem, ext = split_name(filename)
    if ext:
        return f"{stem}.{digest}.{ext}"
    return f"{stem}.{digest}"


__all__ = ["split_name", "fingerprint_name"]
