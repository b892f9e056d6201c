"""
Pin Registry Serialization Utilities

All multi-byte integers are BIG-ENDIAN.
"""

from __future__ import annotations
from typing import Tuple

from pinreg.constants import BIG_ENDIAN, U64_MAX


# ==============================================================================
# Integer Serialization (Big-Endian)
# ==============================================================================

def serialize_u64(value: int) -> bytes:
    """Serialize unsigned 64-bit integer (big-endian)."""
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"u64 value out of range: {value}")
    return value.to_bytes(8, BIG_ENDIAN)


def deserialize_u64(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Deserialize unsigned 64-bit integer (big-endian).
    Returns (value, bytes_consumed).
    """
    if len(data) < offset + 8:
        raise ValueError(f"Need 8 bytes at offset {offset}, have {len(data) - offset}")
    return int.from_bytes(data[offset:offset + 8], BIG_ENDIAN), 8


def serialize_uint(value: int, size: int) -> bytes:
    """Serialize an unsigned integer into exactly `size` bytes (big-endian)."""
    if value < 0 or value >= 1 << (8 * size):
        raise ValueError(f"u{8 * size} value out of range: {value}")
    return value.to_bytes(size, BIG_ENDIAN)


def deserialize_uint(data: bytes) -> int:
    """Interpret the whole byte string as an unsigned big-endian integer."""
    return int.from_bytes(data, BIG_ENDIAN)


class ByteReader:
    """
    Helper class for sequential deserialization.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def read_u64(self) -> int:
        value, size = deserialize_u64(self.data, self.offset)
        self.offset += size
        return value

    def remaining(self) -> int:
        """Return number of bytes remaining."""
        return len(self.data) - self.offset


class ByteWriter:
    """
    Helper class for sequential serialization.
    """

    def __init__(self):
        self.buffer = bytearray()

    def write_u64(self, value: int) -> "ByteWriter":
        self.buffer.extend(serialize_u64(value))
        return self

    def to_bytes(self) -> bytes:
        """Return the serialized bytes."""
        return bytes(self.buffer)

    def __len__(self) -> int:
        return len(self.buffer)
