"""
Pin Registry State

Pin store, access control, notifications, persistence and the
registry operations that compose them.
"""

from pinreg.state.store import PinRecord, PinStore
from pinreg.state.access import LockPolicy, check_ownership, check_lock
from pinreg.state.events import (
    EventEmitter,
    EmittedEvent,
    RegistryEvent,
    Pinned,
    Unpinned,
    LockedPin,
    ChangedOwner,
    ChangedFile,
)
from pinreg.state.storage import PinChange, PinStorage
from pinreg.state.registry import PinRegistry

__all__ = [
    # Store
    "PinRecord",
    "PinStore",
    # Access control
    "LockPolicy",
    "check_ownership",
    "check_lock",
    # Events
    "EventEmitter",
    "EmittedEvent",
    "RegistryEvent",
    "Pinned",
    "Unpinned",
    "LockedPin",
    "ChangedOwner",
    "ChangedFile",
    # Storage
    "PinChange",
    "PinStorage",
    # Registry
    "PinRegistry",
]
