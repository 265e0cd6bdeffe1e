# =============================================================================
# cleantrack_core/offline/local_database.py
# Local SQLite Snapshot Store
# =============================================================================
"""
LocalDatabase - durable key/value store for collection snapshots.

Each collection is kept as one JSON document under a fixed key. The store is
a replica: it is overwritten after every successful remote read and after
every local mutation, and read back only when the remote is unavailable.

Features:
- Automatic schema creation
- Thread-local connections
- Transaction context manager
"""

from __future__ import annotations
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional
import logging

logger = logging.getLogger(__name__)


class LocalDatabase:
    """
    SQLite-backed snapshot store scoped to the running client.

    Usage:
        db = LocalDatabase(Path("local_data/cleantrack.db"))
        db.initialize()
        db.set_snapshot("cleantrack_tasks_v1", "[...]")
        payload = db.get_snapshot("cleantrack_tasks_v1")
    """

    SCHEMA = {
        "snapshots": """
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """,
    }

    def __init__(self, db_path: Path):
        """
        Initialize local database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._ensure_directory()
        self._local = threading.local()
        self._initialized = False

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Create the schema if needed."""
        if self._initialized:
            return

        with self.transaction() as conn:
            for table_name, schema in self.SCHEMA.items():
                conn.execute(schema)
                logger.debug(f"Created/verified table: {table_name}")

        self._initialized = True
        logger.info(f"Local database initialized at: {self.db_path}")

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def get_snapshot(self, key: str) -> Optional[str]:
        """Return the stored payload for ``key`` or None if absent."""
        self.initialize()
        row = self._get_connection().execute(
            "SELECT payload FROM snapshots WHERE key = ?",
            [key],
        ).fetchone()
        return row["payload"] if row else None

    def set_snapshot(self, key: str, payload: str) -> None:
        """Store ``payload`` under ``key``, replacing any previous value."""
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO snapshots (key, payload, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, payload, datetime.now().isoformat()],
            )

    def delete_snapshot(self, key: str) -> bool:
        self.initialize()
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM snapshots WHERE key = ?", [key])
            return cursor.rowcount > 0

    def snapshot_updated_at(self, key: str) -> Optional[datetime]:
        """When the snapshot under ``key`` was last written."""
        self.initialize()
        row = self._get_connection().execute(
            "SELECT updated_at FROM snapshots WHERE key = ?",
            [key],
        ).fetchone()
        return datetime.fromisoformat(row["updated_at"]) if row else None

    def keys(self) -> List[str]:
        self.initialize()
        rows = self._get_connection().execute("SELECT key FROM snapshots ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        """Close this thread's connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
