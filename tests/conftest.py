"""
Pin Registry Test Fixtures
"""

import pytest

from pinreg.core.clock import ManualClock
from pinreg.core.types import Hash, Address, PinKey
from pinreg.state.access import LockPolicy
from pinreg.state.events import EventEmitter
from pinreg.state.registry import PinRegistry
from pinreg.state.store import PinStore

# Creation time used by most registry tests
START_TIME = 1000
WINDOW = 31_536_000


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock positioned at START_TIME."""
    return ManualClock(START_TIME)


@pytest.fixture
def alice() -> Address:
    return Address(bytes([0xA1] * 20))


@pytest.fixture
def bob() -> Address:
    return Address(bytes([0xB0] * 20))


@pytest.fixture
def mock_hash() -> Hash:
    """Create a mock hash for testing."""
    return Hash(bytes([i % 256 for i in range(32)]))


@pytest.fixture
def mock_hash_2() -> Hash:
    """Create a second mock hash for testing."""
    return Hash(bytes([(i + 100) % 256 for i in range(32)]))


@pytest.fixture
def zero_hash() -> Hash:
    """Create a zero hash."""
    return Hash.zero()


@pytest.fixture
def empty_store() -> PinStore:
    return PinStore()


@pytest.fixture
def registry(clock) -> PinRegistry:
    """In-memory registry on the manual clock, default lock policy."""
    return PinRegistry(clock=clock, emitter=EventEmitter(max_history=100))


@pytest.fixture
def require_locked_registry(clock) -> PinRegistry:
    """Registry using the removal-requires-lock policy."""
    return PinRegistry(clock=clock, lock_policy=LockPolicy.REQUIRE_LOCKED)


@pytest.fixture
def natural_key() -> PinKey:
    """Natural key for (1, 2, 0) at START_TIME."""
    return PinKey.from_fields(1, 2, 0, START_TIME)
