"""
Pin Registry Operations

Public operations over the pin lifecycle:

    absent -> live -> (live-locked | absent)

Every operation runs inside one exclusive critical section over the
whole registry. Preconditions are checked before any write; the change
set is then persisted (when storage is attached), applied in memory,
and announced, so a failed operation leaves no trace.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pinreg.constants import OWNERSHIP_WINDOW_SEC
from pinreg.core.clock import Clock, SystemClock
from pinreg.core.codec import derive, derive_locked, parse, is_valid_field
from pinreg.core.types import Hash, Address, PinKey, PinFields
from pinreg.errors import InvalidParameterError, PinNotFoundError, PinLockedError
from pinreg.state.access import (
    LockPolicy,
    check_ownership,
    check_lock,
    is_window_open,
    window_end,
)
from pinreg.state.events import (
    EventEmitter,
    Pinned,
    Unpinned,
    LockedPin,
    ChangedOwner,
    ChangedFile,
    RegistryEvent,
)
from pinreg.state.storage import PinChange, PinStorage
from pinreg.state.store import PinRecord, PinStore

logger = logging.getLogger(__name__)


def _require_type(name: str, value: Any, expected: type) -> None:
    if not isinstance(value, expected):
        raise InvalidParameterError(name, f"expected {expected.__name__}, got {type(value).__name__}")


def _require_caller(caller: Any) -> None:
    # The zero address marks an unowned pin and is never a caller
    _require_type("caller", caller, Address)
    if caller.is_zero():
        raise InvalidParameterError("caller", "zero address cannot act")


@dataclass
class PinRegistry:
    """
    Registry of pins: geospatial-temporal keys bound to file hashes and owners.
    """
    clock: Clock = field(default_factory=SystemClock)
    ownership_window_sec: int = OWNERSHIP_WINDOW_SEC
    lock_policy: LockPolicy = LockPolicy.FORBID_LOCKED
    store: PinStore = field(default_factory=PinStore)
    emitter: EventEmitter = field(default_factory=EventEmitter)
    storage: Optional[PinStorage] = None

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @classmethod
    def from_storage(cls, storage: PinStorage, **kwargs) -> "PinRegistry":
        """Create a registry backed by storage, loading its current contents."""
        return cls(store=storage.load_store(), storage=storage, **kwargs)

    # =========================================================================
    # Mutations
    # =========================================================================

    def pin(
        self,
        caller: Address,
        file_hash: Hash,
        latitude: int,
        longitude: int,
        altitude: int = 0
    ) -> PinKey:
        """
        Create a pin at (latitude, longitude, altitude, now).

        The key is always fresh: if the natural key is taken, the codec
        probes upward to the next free one. The caller becomes owner.

        Returns:
            The allocated pin key
        """
        _require_caller(caller)
        _require_type("file_hash", file_hash, Hash)
        for name, value in (("latitude", latitude), ("longitude", longitude), ("altitude", altitude)):
            if not is_valid_field(value):
                raise InvalidParameterError(name, "must be an unsigned 64-bit integer")

        with self._lock:
            now = self.clock.now()
            key = derive(latitude, longitude, altitude, now, self.store.is_taken)

            self._commit([PinChange(key, PinRecord(file_hash=file_hash, owner=caller), True)])

            fields = key.fields()
            self._emit(Pinned(
                key=key,
                actor=caller,
                file_hash=file_hash,
                latitude=fields.latitude,
                longitude=fields.longitude,
                altitude=fields.altitude,
                timestamp=fields.timestamp,
            ))

            logger.debug(f"Pinned {key.hex()[:16]}... by {caller.hex()[:8]}")
            return key

    def unpin(self, caller: Address, key: PinKey) -> None:
        """
        Remove a live pin, clearing its file hash and owner.

        Raises:
            PinNotFoundError: Key is not live
            NotAuthorizedError: Ownership window open and caller is not owner
            PinLockedError / PinNotLockedError: Lock policy forbids removal
        """
        _require_caller(caller)

        with self._lock:
            self._require_live(key)
            self._check_owner(key, caller)
            check_lock(key, self.lock_policy)

            self._commit([PinChange(key, PinRecord(), False)])

            fields = key.fields()
            self._emit(Unpinned(
                actor=caller,
                latitude=fields.latitude,
                longitude=fields.longitude,
                altitude=fields.altitude,
                timestamp=fields.timestamp,
            ))

            logger.debug(f"Unpinned {key.hex()[:16]}... by {caller.hex()[:8]}")

    def lock_pin(self, caller: Address, key: PinKey) -> PinKey:
        """
        Re-key a live pin under the sentinel timestamp.

        File hash and owner move to the new key and the old key is
        removed. Irreversible.

        Raises:
            PinNotFoundError: Key is not live
            PinLockedError: Key is already locked

        Returns:
            The locked key
        """
        _require_caller(caller)

        with self._lock:
            self._require_live(key)
            if key.is_locked:
                raise PinLockedError(key.hex())

            fields = key.fields()
            new_key = derive_locked(
                fields.latitude,
                fields.longitude,
                fields.altitude,
                self.store.is_taken,
            )
            record = self.store.get_record(key)

            self._commit([
                PinChange(key, PinRecord(), False),
                PinChange(new_key, record, True),
            ])

            self._emit(LockedPin(
                old_key=key,
                new_key=new_key,
                actor=caller,
                file_hash=record.file_hash,
                owner=record.owner,
            ))

            logger.info(f"Locked pin {key.hex()[:16]}... -> {new_key.hex()[:16]}...")
            return new_key

    def set_owner(self, caller: Address, key: PinKey, new_owner: Address) -> None:
        """
        Transfer ownership of a live pin.

        Raises:
            PinNotFoundError: Key is not live
            NotAuthorizedError: Ownership window open and caller is not owner
        """
        _require_caller(caller)
        _require_type("new_owner", new_owner, Address)

        with self._lock:
            self._require_live(key)
            self._check_owner(key, caller)

            record = self.store.get_record(key)
            self._commit([PinChange(key, PinRecord(file_hash=record.file_hash, owner=new_owner), True)])

            self._emit(ChangedOwner(
                key=key,
                actor=caller,
                old_owner=record.owner,
                new_owner=new_owner,
            ))

            logger.debug(f"Owner of {key.hex()[:16]}... -> {new_owner.hex()[:8]}")

    def set_file(self, caller: Address, key: PinKey, new_hash: Hash) -> None:
        """
        Replace the file hash of a live pin.

        Raises:
            PinNotFoundError: Key is not live
            NotAuthorizedError: Ownership window open and caller is not owner
        """
        _require_caller(caller)
        _require_type("new_hash", new_hash, Hash)

        with self._lock:
            self._require_live(key)
            self._check_owner(key, caller)

            record = self.store.get_record(key)
            self._commit([PinChange(key, PinRecord(file_hash=new_hash, owner=record.owner), True)])

            self._emit(ChangedFile(
                key=key,
                actor=caller,
                old_hash=record.file_hash,
                new_hash=new_hash,
            ))

            logger.debug(f"File of {key.hex()[:16]}... -> {new_hash.hex()[:16]}...")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_file(self, key: PinKey) -> Hash:
        with self._lock:
            return self.store.get_file(key)

    def get_owner(self, key: PinKey) -> Address:
        with self._lock:
            return self.store.get_owner(key)

    def count(self) -> int:
        with self._lock:
            return self.store.count()

    def exists(self, key: PinKey) -> bool:
        with self._lock:
            return self.store.exists(key)

    @staticmethod
    def parse(key: PinKey) -> PinFields:
        return parse(key)

    def get_pin_info(self, key: PinKey) -> Dict[str, Any]:
        """Full view of one key, live or not."""
        with self._lock:
            fields = key.fields()
            now = self.clock.now()
            return {
                "key": key.hex(),
                "latitude": fields.latitude,
                "longitude": fields.longitude,
                "altitude": fields.altitude,
                "timestamp": fields.timestamp,
                "file_hash": self.store.get_file(key).hex(),
                "owner": self.store.get_owner(key).hex(),
                "live": self.store.exists(key),
                "locked": key.is_locked,
                "window_end": window_end(key, self.ownership_window_sec),
                "window_open": is_window_open(key, now, self.ownership_window_sec),
            }

    def get_live_keys(self) -> List[PinKey]:
        with self._lock:
            return self.store.get_live_keys()

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_live(self, key: PinKey) -> None:
        _require_type("key", key, PinKey)
        if not self.store.exists(key):
            raise PinNotFoundError(key.hex())

    def _check_owner(self, key: PinKey, caller: Address) -> None:
        check_ownership(
            key,
            self.store.get_owner(key),
            caller,
            self.clock.now(),
            self.ownership_window_sec,
        )

    def _commit(self, changes: List[PinChange]) -> None:
        """Persist, then apply a change set to the in-memory store."""
        if self.storage is not None:
            self.storage.apply_changes(changes)

        for change in changes:
            self.store.set_file(change.key, change.record.file_hash)
            self.store.set_owner(change.key, change.record.owner)
            if change.live:
                self.store.add_live(change.key)
            else:
                self.store.remove_live(change.key)

    def _emit(self, event: RegistryEvent) -> None:
        self.emitter.emit(event)


def get_registry_info() -> dict:
    """Get information about the registry operations."""
    return {
        "operations": [
            "pin",
            "unpin",
            "lock_pin",
            "set_owner",
            "set_file",
        ],
        "ownership_window_sec": OWNERSHIP_WINDOW_SEC,
        "lock_policies": [policy.value for policy in LockPolicy],
    }
