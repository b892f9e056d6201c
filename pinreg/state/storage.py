"""
Pin Registry Storage

SQLite persistence for the pin store. Each registry operation is
written as one transaction.
"""

from __future__ import annotations
import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from pinreg.core.types import Hash, Address, PinKey
from pinreg.errors import StorageError
from pinreg.state.store import PinRecord, PinStore

logger = logging.getLogger(__name__)


# Schema version for migrations
SCHEMA_VERSION = 1


CREATE_TABLES_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- Pins: key -> file hash, key -> owner, live flag
CREATE TABLE IF NOT EXISTS pins (
    pin_key BLOB PRIMARY KEY CHECK (length(pin_key) = 32),
    file_hash BLOB NOT NULL,
    owner BLOB NOT NULL,
    live INTEGER NOT NULL DEFAULT 0,
    updated_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_pins_owner ON pins(owner);
CREATE INDEX IF NOT EXISTS idx_pins_live ON pins(live) WHERE live = 1;
"""


@dataclass(frozen=True)
class PinChange:
    """Target state of one key after an operation."""
    key: PinKey
    record: PinRecord
    live: bool


@dataclass
class PinStorage:
    """
    SQLite-based pin storage.

    Rows are keyed by the exact 32 key bytes. A key whose record is
    cleared and which is not live has no row.
    """
    db_path: str
    _conn: Optional[sqlite3.Connection] = None

    def __post_init__(self):
        self._conn = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        if self._conn is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(
            self.db_path,
            isolation_level=None,  # Explicit BEGIN/COMMIT
            check_same_thread=False
        )

        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")

        self._init_schema()

        logger.info(f"Connected to pin storage: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        self._conn.executescript(CREATE_TABLES_SQL)

        cursor = self._conn.execute(
            "SELECT value FROM schema_info WHERE key = 'version'"
        )
        row = cursor.fetchone()

        if row is None:
            self._conn.execute(
                "INSERT INTO schema_info (key, value) VALUES ('version', ?)",
                (str(SCHEMA_VERSION),)
            )
        elif int(row[0]) > SCHEMA_VERSION:
            raise StorageError(
                f"Database schema v{row[0]} is newer than supported v{SCHEMA_VERSION}",
                {"found": int(row[0]), "supported": SCHEMA_VERSION}
            )

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Closed pin storage")

    def __enter__(self) -> "PinStorage":
        self.connect()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _ensure_connected(self) -> None:
        if self._conn is None:
            self.connect()

    # =========================================================================
    # Pin Operations
    # =========================================================================

    def apply_changes(self, changes: Iterable[PinChange]) -> None:
        """
        Write a set of key changes atomically.

        Raises:
            StorageError: The transaction failed and was rolled back
        """
        self._ensure_connected()
        now = int(time.time() * 1000)

        try:
            self._conn.execute("BEGIN IMMEDIATE")
            for change in changes:
                if change.record.is_empty() and not change.live:
                    self._conn.execute(
                        "DELETE FROM pins WHERE pin_key = ?",
                        (change.key.data,)
                    )
                    continue

                self._conn.execute(
                    """INSERT INTO pins (pin_key, file_hash, owner, live, updated_at)
                       VALUES (?, ?, ?, ?, ?)
                       ON CONFLICT(pin_key) DO UPDATE SET
                        file_hash = excluded.file_hash,
                        owner = excluded.owner,
                        live = excluded.live,
                        updated_at = excluded.updated_at""",
                    (
                        change.key.data,
                        change.record.file_hash.data,
                        change.record.owner.data,
                        1 if change.live else 0,
                        now,
                    )
                )
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise StorageError(f"Transaction failed: {e}") from e

    def load_record(self, key: PinKey) -> Optional[PinRecord]:
        """Load one record, or None if the key has no row."""
        self._ensure_connected()

        cursor = self._conn.execute(
            "SELECT file_hash, owner FROM pins WHERE pin_key = ?",
            (key.data,)
        )
        row = cursor.fetchone()

        if row is None:
            return None

        return PinRecord(file_hash=Hash(row[0]), owner=Address(row[1]))

    def load_store(self) -> PinStore:
        """Rebuild the in-memory store from the database."""
        self._ensure_connected()

        store = PinStore()
        cursor = self._conn.execute("SELECT pin_key, file_hash, owner, live FROM pins")

        for pin_key, file_hash, owner, live in cursor:
            key = PinKey(pin_key)
            store.set_file(key, Hash(file_hash))
            store.set_owner(key, Address(owner))
            if live:
                store.add_live(key)

        logger.info(f"Loaded {store.count()} live pins from storage")
        return store

    def get_live_count(self) -> int:
        self._ensure_connected()
        cursor = self._conn.execute("SELECT COUNT(*) FROM pins WHERE live = 1")
        return cursor.fetchone()[0]

    # =========================================================================
    # Utility Operations
    # =========================================================================

    def vacuum(self) -> None:
        """Compact database."""
        self._ensure_connected()
        self._conn.execute("VACUUM")
        logger.info("Database vacuumed")

    def get_database_size(self) -> int:
        """Get database file size in bytes."""
        path = Path(self.db_path)
        if path.exists():
            return path.stat().st_size
        return 0

    def get_statistics(self) -> Dict[str, Any]:
        """Get database statistics."""
        self._ensure_connected()

        cursor = self._conn.execute("SELECT COUNT(*) FROM pins")
        return {
            "file_size_bytes": self.get_database_size(),
            "row_count": cursor.fetchone()[0],
            "live_count": self.get_live_count(),
            "schema_version": SCHEMA_VERSION,
        }
