# hashmark/fingerprint/copier.py
"""Durable file copy."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

from hashmark.fingerprint.hashing import CHUNK_SIZE, new_hasher


def copy_file(src: str | Path, dst: str | Path, chunk_size: int = CHUNK_SIZE) -> Tuple[int, str]:
    """
    Copy all bytes from `src` to `dst`, creating or truncating `dst`.

    Data is flushed and fsync'd before returning. Returns the number of
    bytes written and the digest of exactly those bytes, so callers can
    tell whether the source changed since it was hashed.
    Any failure raises OSError; `dst` may be partially written in that case.
    """
    h = new_hasher()
    written = 0
    with open(src, "rb") as fin, open(dst, "wb") as fout:
        for chunk in iter(lambda: fin.read(chunk_size), b""):
            fout.write(chunk)
            h.update(chunk)
            written += len(chunk)
        fout.flush()
        os.fsync(fout.fileno())
    return written, h.hexdigest()


__all__ = ["copy_file"]
