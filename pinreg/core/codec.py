"""
Pin Registry Identifier Codec

Derives pin keys from (latitude, longitude, altitude, creation time) and
parses them back. Collisions are resolved by probing upward through the
key space, so every derived key is free at derivation time.
"""

from __future__ import annotations
import logging
from typing import Callable

from pinreg.constants import (
    FIELD_SIZE,
    LOCKED_TIMESTAMP,
    PIN_KEY_MAX,
    PIN_PREFIX_MAX,
    U64_MAX,
)
from pinreg.core.types import PinKey, PinFields
from pinreg.errors import KeySpaceExhaustedError, SentinelClockError

logger = logging.getLogger(__name__)

# Returns True when the key already holds a record
IsTaken = Callable[[PinKey], bool]


def check_creation_time(creation_time: int) -> None:
    """
    Reject clock values that cannot be a creation timestamp.

    Raises:
        SentinelClockError: If the value is the lock sentinel or not a u64
    """
    if not 0 <= creation_time < LOCKED_TIMESTAMP:
        logger.critical(f"Host clock produced unusable value {creation_time}")
        raise SentinelClockError(creation_time)


def derive(
    latitude: int,
    longitude: int,
    altitude: int,
    creation_time: int,
    is_taken: IsTaken
) -> PinKey:
    """
    Derive a free pin key.

    The four fields are concatenated; while the candidate is taken it is
    incremented by one as a 256-bit unsigned integer. Candidates whose
    timestamp field equals the lock sentinel are skipped.

    Args:
        latitude: Encoded latitude (u64)
        longitude: Encoded longitude (u64)
        altitude: Encoded altitude (u64)
        creation_time: Host clock value (u64, never the sentinel)
        is_taken: Occupancy probe against the store

    Returns:
        First free key at or above the natural key

    Raises:
        SentinelClockError: creation_time is unusable
        KeySpaceExhaustedError: No free key remains
    """
    check_creation_time(creation_time)

    start = PinKey.from_fields(latitude, longitude, altitude, creation_time)
    value = int(start)
    probes = 0

    while True:
        candidate = PinKey.from_int(value)
        if not candidate.is_locked and not is_taken(candidate):
            break
        if value == PIN_KEY_MAX:
            raise KeySpaceExhaustedError(start.hex())
        value += 1
        probes += 1

    if probes:
        logger.debug(f"Resolved key collision after {probes} probe(s): {candidate.hex()[:16]}...")

    return candidate


def derive_locked(
    latitude: int,
    longitude: int,
    altitude: int,
    is_taken: IsTaken
) -> PinKey:
    """
    Derive a free locked key over (latitude, longitude, altitude).

    The timestamp field is always the sentinel. Collisions with other locked
    pins are probed by incrementing the 24-byte lat || lon || alt prefix.

    Raises:
        KeySpaceExhaustedError: The prefix space above the start is full
    """
    start = PinKey.from_fields(latitude, longitude, altitude, LOCKED_TIMESTAMP)
    prefix = int(start) >> (8 * FIELD_SIZE)
    probes = 0

    while True:
        candidate = PinKey.from_int((prefix << (8 * FIELD_SIZE)) | LOCKED_TIMESTAMP)
        if not is_taken(candidate):
            break
        if prefix == PIN_PREFIX_MAX:
            raise KeySpaceExhaustedError(start.hex())
        prefix += 1
        probes += 1

    if probes:
        logger.debug(f"Resolved locked key collision after {probes} probe(s)")

    return candidate


def parse(key: PinKey) -> PinFields:
    """Split a key into (latitude, longitude, altitude, timestamp)."""
    return key.fields()


def is_valid_field(value: int) -> bool:
    """Check that a value fits one 8-byte key field."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U64_MAX
