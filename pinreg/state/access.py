"""
Pin Registry Access Control

Time-decaying ownership and lock-status checks. Both checks are
read-only: they raise on violation and never touch state.
"""

from __future__ import annotations
from enum import Enum

from pinreg.constants import (
    OWNERSHIP_WINDOW_SEC,
    LOCK_POLICY_FORBID_LOCKED,
    LOCK_POLICY_REQUIRE_LOCKED,
)
from pinreg.core.types import Address, PinKey
from pinreg.errors import NotAuthorizedError, PinLockedError, PinNotLockedError


class LockPolicy(Enum):
    """Which lock status permits removal."""
    FORBID_LOCKED = LOCK_POLICY_FORBID_LOCKED       # Locked pins can never be unpinned
    REQUIRE_LOCKED = LOCK_POLICY_REQUIRE_LOCKED     # Only locked pins can be unpinned


def window_end(key: PinKey, window_sec: int = OWNERSHIP_WINDOW_SEC) -> int:
    """
    End of the ownership window for a key.

    For locked keys the timestamp is the sentinel, so the window
    never ends within the clock's range.
    """
    return key.timestamp + window_sec


def is_window_open(key: PinKey, now: int, window_sec: int = OWNERSHIP_WINDOW_SEC) -> bool:
    return now < window_end(key, window_sec)


def check_ownership(
    key: PinKey,
    owner: Address,
    caller: Address,
    now: int,
    window_sec: int = OWNERSHIP_WINDOW_SEC
) -> None:
    """
    Gate a mutation by the ownership window.

    While now < creation_time + window only the recorded owner may
    mutate; afterwards anyone may. An unowned pin (zero owner) is
    frozen until its window closes.

    Raises:
        NotAuthorizedError: Window open and caller is not the owner
    """
    if not is_window_open(key, now, window_sec):
        return
    if owner.is_zero() or caller != owner:
        raise NotAuthorizedError(key.hex(), caller.hex(), window_end(key, window_sec))


def check_lock(key: PinKey, policy: LockPolicy = LockPolicy.FORBID_LOCKED) -> None:
    """
    Gate removal by lock status.

    Raises:
        PinLockedError: FORBID_LOCKED and the key is locked
        PinNotLockedError: REQUIRE_LOCKED and the key is not locked
    """
    if policy is LockPolicy.FORBID_LOCKED:
        if key.is_locked:
            raise PinLockedError(key.hex())
    elif not key.is_locked:
        raise PinNotLockedError(key.hex())
