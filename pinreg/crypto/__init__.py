"""
Pin Registry Content Hashing
"""

from pinreg.crypto.hash import sha3_256, content_hash

__all__ = [
    "sha3_256",
    "content_hash",
]
