"""
Pin Registry Storage Tests
"""

import sqlite3

import pytest

from pinreg.core.clock import ManualClock
from pinreg.core.types import PinKey
from pinreg.errors import StorageError, NotAuthorizedError
from pinreg.state.registry import PinRegistry
from pinreg.state.storage import PinChange, PinStorage, SCHEMA_VERSION
from pinreg.state.store import PinRecord


@pytest.fixture
def storage(tmp_path):
    """File-backed storage in a temporary directory."""
    db = PinStorage(str(tmp_path / "data" / "pins.db"))
    db.connect()
    yield db
    db.close()


class TestPinStorage:
    """Tests for PinStorage."""

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "pins.db"
        with PinStorage(str(path)):
            pass
        assert path.exists()

    def test_apply_and_load(self, storage, natural_key, mock_hash, alice):
        storage.apply_changes([PinChange(natural_key, PinRecord(mock_hash, alice), True)])

        assert storage.load_record(natural_key) == PinRecord(mock_hash, alice)
        assert storage.get_live_count() == 1

        store = storage.load_store()
        assert store.exists(natural_key)
        assert store.get_owner(natural_key) == alice

    def test_cleared_record_deletes_row(self, storage, natural_key, mock_hash, alice):
        storage.apply_changes([PinChange(natural_key, PinRecord(mock_hash, alice), True)])
        storage.apply_changes([PinChange(natural_key, PinRecord(), False)])

        assert storage.load_record(natural_key) is None
        assert storage.get_statistics()["row_count"] == 0

    def test_failed_transaction_rolls_back(self, storage, natural_key, mock_hash, alice):
        """A failing change set leaves earlier rows of the same set unwritten."""

        class BadKey:
            data = b"short"

        bad = PinChange(BadKey(), PinRecord(mock_hash, alice), True)

        with pytest.raises(StorageError):
            storage.apply_changes([
                PinChange(natural_key, PinRecord(mock_hash, alice), True),
                bad,
            ])

        assert storage.load_record(natural_key) is None

    def test_newer_schema_rejected(self, tmp_path):
        path = tmp_path / "pins.db"
        with PinStorage(str(path)):
            pass

        conn = sqlite3.connect(str(path))
        conn.execute(
            "UPDATE schema_info SET value = ? WHERE key = 'version'",
            (str(SCHEMA_VERSION + 1),)
        )
        conn.commit()
        conn.close()

        with pytest.raises(StorageError):
            PinStorage(str(path)).connect()

    def test_statistics(self, storage):
        storage.vacuum()
        stats = storage.get_statistics()
        assert stats["schema_version"] == SCHEMA_VERSION
        assert stats["live_count"] == 0
        assert stats["file_size_bytes"] > 0


class TestPersistentRegistry:
    """Registry state survives a restart."""

    def test_reload(self, tmp_path, alice, bob, mock_hash, mock_hash_2):
        path = str(tmp_path / "pins.db")

        with PinStorage(path) as storage:
            registry = PinRegistry.from_storage(storage, clock=ManualClock(1000))
            k1 = registry.pin(alice, mock_hash, 1, 2, 0)
            k2 = registry.pin(bob, mock_hash_2, 1, 2, 0)
            locked = registry.lock_pin(alice, k1)
            registry.unpin(bob, k2)

        with PinStorage(path) as storage:
            registry = PinRegistry.from_storage(storage, clock=ManualClock(1000))

            assert registry.count() == 1
            assert not registry.exists(k1)
            assert not registry.exists(k2)
            assert registry.exists(locked)
            assert registry.get_file(locked) == mock_hash
            assert registry.get_owner(locked) == alice

            # Ownership still enforced after reload
            with pytest.raises(NotAuthorizedError):
                registry.set_owner(bob, locked, bob)

    def test_failed_persist_leaves_registry_unchanged(self, tmp_path, alice, mock_hash):
        """When the database write fails, memory and notifications stay as they were."""
        path = str(tmp_path / "pins.db")

        with PinStorage(path) as storage:
            registry = PinRegistry.from_storage(storage, clock=ManualClock(1000))
            key = registry.pin(alice, mock_hash, 1, 2, 0)

            before = registry.store.to_dict()
            sequence = registry.emitter.last_sequence

            conn = sqlite3.connect(path)
            conn.execute("DROP TABLE pins")
            conn.commit()
            conn.close()

            with pytest.raises(StorageError):
                registry.pin(alice, mock_hash, 1, 2, 0)
            with pytest.raises(StorageError):
                registry.lock_pin(alice, key)

            assert registry.count() == 1
            assert registry.exists(key)
            assert registry.store.to_dict() == before
            assert registry.emitter.last_sequence == sequence

    def test_reload_keeps_probing(self, tmp_path, alice, mock_hash):
        path = str(tmp_path / "pins.db")

        with PinStorage(path) as storage:
            PinRegistry.from_storage(storage, clock=ManualClock(1000)).pin(alice, mock_hash, 1, 2, 0)

        with PinStorage(path) as storage:
            registry = PinRegistry.from_storage(storage, clock=ManualClock(1000))
            key = registry.pin(alice, mock_hash, 1, 2, 0)
            assert key == PinKey.from_fields(1, 2, 0, 1001)
