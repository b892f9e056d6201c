"""
Pin Registry Core Types

All multi-byte integers are BIG-ENDIAN unless noted.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import NamedTuple

from pinreg.constants import (
    HASH_SIZE,
    ADDRESS_SIZE,
    PIN_KEY_SIZE,
    TIMESTAMP_OFFSET,
    LOCKED_TIMESTAMP,
    BIG_ENDIAN,
)
from pinreg.core.serialization import (
    ByteReader,
    ByteWriter,
    serialize_uint,
    deserialize_uint,
)


@dataclass(frozen=True, slots=True)
class Hash:
    """
    Content identifier of a pinned file.

    SIZE: 32 bytes
    SERIALIZATION: raw bytes
    The zero hash means "no file".
    """
    data: bytes = field(default_factory=lambda: bytes(HASH_SIZE))

    def __post_init__(self):
        if len(self.data) != HASH_SIZE:
            raise ValueError(f"Hash must be {HASH_SIZE} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"Hash({self.data.hex()[:16]}...)"

    def hex(self) -> str:
        return self.data.hex()

    def is_zero(self) -> bool:
        return not any(self.data)

    @classmethod
    def from_hex(cls, hex_string: str) -> Hash:
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> Hash:
        return cls(bytes(HASH_SIZE))


@dataclass(frozen=True, slots=True)
class Address:
    """
    Opaque caller identity supplied by the host.

    SIZE: 20 bytes
    The zero address means "unowned".
    """
    data: bytes = field(default_factory=lambda: bytes(ADDRESS_SIZE))

    def __post_init__(self):
        if len(self.data) != ADDRESS_SIZE:
            raise ValueError(f"Address must be {ADDRESS_SIZE} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"Address({self.data.hex()})"

    def hex(self) -> str:
        return self.data.hex()

    def is_zero(self) -> bool:
        return not any(self.data)

    @classmethod
    def from_hex(cls, hex_string: str) -> Address:
        if hex_string.startswith("0x"):
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> Address:
        return cls(bytes(ADDRESS_SIZE))


class PinFields(NamedTuple):
    """The four fixed-width fields of a pin key, in key order."""
    latitude: int
    longitude: int
    altitude: int
    timestamp: int


@dataclass(frozen=True, slots=True)
class PinKey:
    """
    Composite pin identifier.

    SIZE: 32 bytes
    SERIALIZATION: latitude(8) || longitude(8) || altitude(8) || timestamp(8)
    Two keys are equal iff all 32 bytes match.
    """
    data: bytes = field(default_factory=lambda: bytes(PIN_KEY_SIZE))

    def __post_init__(self):
        if len(self.data) != PIN_KEY_SIZE:
            raise ValueError(f"PinKey must be {PIN_KEY_SIZE} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return self.data

    def __int__(self) -> int:
        return deserialize_uint(self.data)

    def __repr__(self) -> str:
        return f"PinKey({self.data.hex()})"

    def hex(self) -> str:
        return self.data.hex()

    @property
    def timestamp(self) -> int:
        return int.from_bytes(self.data[TIMESTAMP_OFFSET:], BIG_ENDIAN)

    @property
    def is_locked(self) -> bool:
        """Locked keys carry the reserved maximum timestamp."""
        return self.timestamp == LOCKED_TIMESTAMP

    def fields(self) -> PinFields:
        """Split the key back into its four fields."""
        reader = ByteReader(self.data)
        return PinFields(
            latitude=reader.read_u64(),
            longitude=reader.read_u64(),
            altitude=reader.read_u64(),
            timestamp=reader.read_u64(),
        )

    @classmethod
    def from_fields(
        cls,
        latitude: int,
        longitude: int,
        altitude: int,
        timestamp: int
    ) -> PinKey:
        writer = ByteWriter()
        writer.write_u64(latitude)
        writer.write_u64(longitude)
        writer.write_u64(altitude)
        writer.write_u64(timestamp)
        return cls(writer.to_bytes())

    @classmethod
    def from_int(cls, value: int) -> PinKey:
        return cls(serialize_uint(value, PIN_KEY_SIZE))

    @classmethod
    def from_hex(cls, hex_string: str) -> PinKey:
        if hex_string.startswith("0x"):
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))
