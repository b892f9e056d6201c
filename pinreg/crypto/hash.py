"""
Pin Registry Content Hashing

SHA3-256 (NIST FIPS 202) file hashes for pinned content.
"""

from __future__ import annotations
import hashlib
from pathlib import Path
from typing import Union

from pinreg.core.types import Hash

CHUNK_SIZE = 1 << 20


def sha3_256(data: bytes) -> Hash:
    """Hash bytes with SHA3-256."""
    return Hash(hashlib.sha3_256(data).digest())


def content_hash(path: Union[str, Path]) -> Hash:
    """
    Hash a file's contents with SHA3-256, reading in 1 MiB chunks.

    Args:
        path: File to hash

    Returns:
        32-byte content hash suitable for pinning
    """
    hasher = hashlib.sha3_256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return Hash(hasher.digest())
