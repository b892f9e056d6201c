"""
Pin Registry Notifications

Structured events emitted after each committed mutation, for
off-system indexers. Delivery is fire-and-forget and ordered by
commit order.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Deque, Dict, List

from pinreg.constants import DEFAULT_EVENT_HISTORY
from pinreg.core.types import Hash, Address, PinKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEvent:
    """Base class for registry notifications."""
    name: ClassVar[str] = "RegistryEvent"

    def payload(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, **self.payload()}


@dataclass(frozen=True)
class Pinned(RegistryEvent):
    name: ClassVar[str] = "Pinned"

    key: PinKey
    actor: Address
    file_hash: Hash
    latitude: int
    longitude: int
    altitude: int
    timestamp: int

    def payload(self) -> Dict[str, Any]:
        return {
            "key": self.key.hex(),
            "actor": self.actor.hex(),
            "file_hash": self.file_hash.hex(),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Unpinned(RegistryEvent):
    """
    Removal notification.

    Carries the parsed key fields instead of the key; consumers rebuild
    it with PinKey.from_fields.
    """
    name: ClassVar[str] = "Unpinned"

    actor: Address
    latitude: int
    longitude: int
    altitude: int
    timestamp: int

    def key(self) -> PinKey:
        return PinKey.from_fields(self.latitude, self.longitude, self.altitude, self.timestamp)

    def payload(self) -> Dict[str, Any]:
        return {
            "actor": self.actor.hex(),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class LockedPin(RegistryEvent):
    name: ClassVar[str] = "LockedPin"

    old_key: PinKey
    new_key: PinKey
    actor: Address
    file_hash: Hash
    owner: Address

    def payload(self) -> Dict[str, Any]:
        return {
            "old_key": self.old_key.hex(),
            "new_key": self.new_key.hex(),
            "actor": self.actor.hex(),
            "file_hash": self.file_hash.hex(),
            "owner": self.owner.hex(),
        }


@dataclass(frozen=True)
class ChangedOwner(RegistryEvent):
    name: ClassVar[str] = "ChangedOwner"

    key: PinKey
    actor: Address
    old_owner: Address
    new_owner: Address

    def payload(self) -> Dict[str, Any]:
        return {
            "key": self.key.hex(),
            "actor": self.actor.hex(),
            "old_owner": self.old_owner.hex(),
            "new_owner": self.new_owner.hex(),
        }


@dataclass(frozen=True)
class ChangedFile(RegistryEvent):
    name: ClassVar[str] = "ChangedFile"

    key: PinKey
    actor: Address
    old_hash: Hash
    new_hash: Hash

    def payload(self) -> Dict[str, Any]:
        return {
            "key": self.key.hex(),
            "actor": self.actor.hex(),
            "old_hash": self.old_hash.hex(),
            "new_hash": self.new_hash.hex(),
        }


@dataclass(frozen=True)
class EmittedEvent:
    """Event stamped with its commit sequence number."""
    sequence: int
    event: RegistryEvent

    def to_dict(self) -> Dict[str, Any]:
        return {"sequence": self.sequence, **self.event.to_dict()}


Subscriber = Callable[[EmittedEvent], None]


@dataclass
class EventEmitter:
    """
    Fans committed events out to subscribers.

    Keeps a bounded in-memory history so late indexers can catch up
    by sequence number. A failing subscriber is logged and skipped.
    """
    max_history: int = DEFAULT_EVENT_HISTORY

    _subscribers: List[Subscriber] = field(default_factory=list)
    _history: Deque[EmittedEvent] = field(default_factory=deque)
    _sequence: int = 0

    def __post_init__(self):
        self._history = deque(maxlen=self.max_history)

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        if callback in self._subscribers:
            self._subscribers.remove(callback)
            return True
        return False

    def emit(self, event: RegistryEvent) -> EmittedEvent:
        """Stamp, record and deliver an event."""
        self._sequence += 1
        emitted = EmittedEvent(sequence=self._sequence, event=event)
        self._history.append(emitted)

        for callback in list(self._subscribers):
            try:
                callback(emitted)
            except Exception as e:
                logger.error(f"Subscriber failed on {event.name} #{emitted.sequence}: {e}")

        return emitted

    def history(self, since: int = 0, limit: int = 100) -> List[EmittedEvent]:
        """Events with sequence > since, oldest first."""
        result = []
        for emitted in self._history:
            if emitted.sequence > since:
                result.append(emitted)
                if len(result) >= limit:
                    break
        return result

    @property
    def last_sequence(self) -> int:
        return self._sequence

    def subscriber_count(self) -> int:
        return len(self._subscribers)
