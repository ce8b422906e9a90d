# hashmark/fingerprint/hashing.py
"""
Content hashing.

The digest depends only on file bytes, never on path or name. MD5 is used
for speed and for compatibility with existing manifests; it is not a
security boundary.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO

CHUNK_SIZE = 1024 * 1024
DIGEST_LENGTH = 32


def new_hasher():
    """Fresh hash object for the content digest algorithm."""
    return hashlib.md5(usedforsecurity=False)


def hash_stream(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> str:
    """
    Hash a binary stream to a lowercase hex digest.

    Consumes the stream to EOF. Read errors propagate as OSError.
    """
    h = new_hasher()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        h.update(chunk)
    return h.hexdigest()


def hash_file(path: str | Path, chunk_size: int = CHUNK_SIZE) -> str:
    """Hash the content of the file at `path`."""
    with open(path, "rb") as f:
        return hash_stream(f, chunk_size)


def hash_bytes(data: bytes) -> str:
    """Hash an in-memory byte string."""
    h = new_hasher()
    h.update(data)
    return h.hexdigest()


__all__ = ["new_hasher", "hash_stream", "hash_file", "hash_bytes", "CHUNK_SIZE", "DIGEST_LENGTH"]
