"""
Pin Registry Identifier Codec Tests
"""

import pytest

from pinreg.constants import LOCKED_TIMESTAMP, PIN_KEY_MAX, U64_MAX
from pinreg.core.codec import derive, derive_locked, parse, is_valid_field, check_creation_time
from pinreg.core.types import PinKey, PinFields
from pinreg.errors import KeySpaceExhaustedError, SentinelClockError


def _taken(*keys):
    """Occupancy probe over a fixed set of keys."""
    occupied = set(keys)
    return lambda key: key in occupied


def _never_taken(key):
    return False


class TestDerive:
    """Tests for derive()."""

    def test_natural_key_when_free(self):
        key = derive(1, 2, 0, 1000, _never_taken)
        assert key == PinKey.from_fields(1, 2, 0, 1000)
        assert parse(key) == PinFields(1, 2, 0, 1000)

    def test_collision_increments_by_one(self):
        """A taken natural key resolves to the next 256-bit value."""
        first = PinKey.from_fields(1, 2, 0, 1000)
        key = derive(1, 2, 0, 1000, _taken(first))
        assert int(key) == int(first) + 1
        assert key.fields() == PinFields(1, 2, 0, 1001)

    def test_collision_chain(self):
        k1 = PinKey.from_fields(1, 2, 0, 1000)
        k2 = PinKey.from_int(int(k1) + 1)
        k3 = PinKey.from_int(int(k1) + 2)
        key = derive(1, 2, 0, 1000, _taken(k1, k2, k3))
        assert int(key) == int(k1) + 3

    def test_carry_into_altitude(self):
        """Probing past the last timestamp carries into the altitude field."""
        start = PinKey.from_fields(1, 2, 0, LOCKED_TIMESTAMP - 1)
        key = derive(1, 2, 0, LOCKED_TIMESTAMP - 1, _taken(start))
        # The sentinel timestamp is skipped
        assert key == PinKey.from_fields(1, 2, 1, 0)
        assert not key.is_locked

    def test_never_returns_locked_key(self):
        start = PinKey.from_fields(5, 5, 5, LOCKED_TIMESTAMP - 1)
        key = derive(5, 5, 5, LOCKED_TIMESTAMP - 1, _taken(start))
        assert key.timestamp != LOCKED_TIMESTAMP

    def test_key_space_exhausted(self):
        top = PinKey.from_int(PIN_KEY_MAX - 1)
        fields = top.fields()
        with pytest.raises(KeySpaceExhaustedError):
            derive(
                fields.latitude,
                fields.longitude,
                fields.altitude,
                fields.timestamp,
                _taken(top),
            )

    def test_sentinel_clock_rejected(self):
        with pytest.raises(SentinelClockError):
            derive(1, 2, 0, LOCKED_TIMESTAMP, _never_taken)

    def test_negative_clock_rejected(self):
        with pytest.raises(SentinelClockError):
            check_creation_time(-1)

    def test_derive_is_pure(self):
        """Derivation never calls anything but the probe."""
        seen = []

        def probe(key):
            seen.append(key)
            return False

        derive(3, 4, 5, 6, probe)
        assert seen == [PinKey.from_fields(3, 4, 5, 6)]


class TestDeriveLocked:
    """Tests for derive_locked()."""

    def test_sentinel_timestamp(self):
        key = derive_locked(1, 2, 0, _never_taken)
        assert key == PinKey.from_fields(1, 2, 0, LOCKED_TIMESTAMP)
        assert key.is_locked

    def test_collision_increments_prefix(self):
        first = PinKey.from_fields(1, 2, 0, LOCKED_TIMESTAMP)
        key = derive_locked(1, 2, 0, _taken(first))
        assert key == PinKey.from_fields(1, 2, 1, LOCKED_TIMESTAMP)

    def test_prefix_carry(self):
        first = PinKey.from_fields(1, 2, U64_MAX, LOCKED_TIMESTAMP)
        key = derive_locked(1, 2, U64_MAX, _taken(first))
        assert key == PinKey.from_fields(1, 3, 0, LOCKED_TIMESTAMP)

    def test_prefix_exhausted(self):
        top = PinKey.from_fields(U64_MAX, U64_MAX, U64_MAX, LOCKED_TIMESTAMP)
        with pytest.raises(KeySpaceExhaustedError):
            derive_locked(U64_MAX, U64_MAX, U64_MAX, _taken(top))


class TestFieldValidation:
    """Tests for is_valid_field()."""

    def test_valid(self):
        assert is_valid_field(0)
        assert is_valid_field(U64_MAX)

    def test_invalid(self):
        assert not is_valid_field(-1)
        assert not is_valid_field(U64_MAX + 1)
        assert not is_valid_field(True)
        assert not is_valid_field("1")
