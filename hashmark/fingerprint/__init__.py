"""
Fingerprint primitives: content hashing, name derivation and durable copy.

None of these know about manifests; the pipeline composes them.
"""

from .copier import copy_file
from .hashing import CHUNK_SIZE, DIGEST_LENGTH, hash_bytes, hash_file, hash_stream, new_hasher
from .naming import fingerprint_name, split_name

__all__ = [
    "CHUNK_SIZE",
    "DIGEST_LENGTH",
    "new_hasher",
    "hash_stream",
    "hash_file",
    "hash_bytes",
    "split_name",
    "fingerprint_name",
    "copy_file",
]
