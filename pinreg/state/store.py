"""
Pin Registry Store

Keyed storage of file hashes and owners plus the set of live pin keys.
All operations are total.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Set

from pinreg.core.types import Hash, Address, PinKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PinRecord:
    """File hash and owner bound to one pin key."""
    file_hash: Hash = field(default_factory=Hash.zero)
    owner: Address = field(default_factory=Address.zero)

    def is_empty(self) -> bool:
        return self.file_hash.is_zero() and self.owner.is_zero()


@dataclass
class PinStore:
    """
    Registry aggregate: key -> file hash, key -> owner, live keys.

    Zero hashes and zero owners are never stored; reading an absent
    entry returns the zero value.
    """
    _files: Dict[bytes, Hash] = field(default_factory=dict)
    _owners: Dict[bytes, Address] = field(default_factory=dict)
    _live: Set[bytes] = field(default_factory=set)

    def set_file(self, key: PinKey, file_hash: Hash) -> None:
        """Set file hash for key (zero hash deletes)."""
        if self.get_file(key) == file_hash:
            return
        if file_hash.is_zero():
            del self._files[key.data]
        else:
            self._files[key.data] = file_hash

    def set_owner(self, key: PinKey, owner: Address) -> None:
        """Set owner for key (zero address deletes)."""
        if owner.is_zero():
            self._owners.pop(key.data, None)
        else:
            self._owners[key.data] = owner

    def add_live(self, key: PinKey) -> None:
        self._live.add(key.data)

    def remove_live(self, key: PinKey) -> None:
        self._live.discard(key.data)

    def get_file(self, key: PinKey) -> Hash:
        return self._files.get(key.data, Hash.zero())

    def get_owner(self, key: PinKey) -> Address:
        return self._owners.get(key.data, Address.zero())

    def get_record(self, key: PinKey) -> PinRecord:
        return PinRecord(file_hash=self.get_file(key), owner=self.get_owner(key))

    def count(self) -> int:
        """Number of live pins."""
        return len(self._live)

    def exists(self, key: PinKey) -> bool:
        """Check if key is live."""
        return key.data in self._live

    def is_taken(self, key: PinKey) -> bool:
        """Check if key is live or still holds a file."""
        return key.data in self._live or key.data in self._files

    def iter_live(self) -> Iterator[PinKey]:
        """Iterate live keys in key order."""
        for key_bytes in sorted(self._live):
            yield PinKey(key_bytes)

    def get_live_keys(self) -> List[PinKey]:
        return list(self.iter_live())

    def copy(self) -> "PinStore":
        """Create a copy of the store."""
        return PinStore(
            _files=dict(self._files),
            _owners=dict(self._owners),
            _live=set(self._live),
        )

    def to_dict(self) -> Dict[str, dict]:
        """Export every known key as dictionary."""
        keys = set(self._files) | set(self._owners) | self._live
        return {
            key_bytes.hex(): {
                "file_hash": self._files.get(key_bytes, Hash.zero()).hex(),
                "owner": self._owners.get(key_bytes, Address.zero()).hex(),
                "live": key_bytes in self._live,
            }
            for key_bytes in sorted(keys)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, dict]) -> "PinStore":
        """Import store from dictionary."""
        store = cls()
        for key_hex, entry in data.items():
            key = PinKey.from_hex(key_hex)
            store.set_file(key, Hash.from_hex(entry.get("file_hash", "00" * 32)))
            store.set_owner(key, Address.from_hex(entry.get("owner", "00" * 20)))
            if entry.get("live", False):
                store.add_live(key)
        logger.debug(f"Imported {store.count()} live pins")
        return store
