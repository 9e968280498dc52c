"""
Repository pattern for key/value persistence.

Settings and the cached account payload both live behind the same
two-method storage port so the derivation code never touches I/O.
"""

from typing import Dict, Optional, Protocol
from .db import DEFAULT_DB_PATH, get_connection


class KeyValueStore(Protocol):
    """Storage port: read and write one string value by key."""

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, value: str) -> None:
        ...


class SqliteKeyValueStore:
    """Key/value store backed by a single SQLite table.

    Each call opens and closes its own connection; reads and writes are
    never composed into multi-step transactions, so concurrent writers
    simply overwrite each other (last writer wins).
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the store with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        if not self._schema_ready:
            initialize_schema(self.db_path)
            self._schema_ready = True

    def read(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or None when absent.

        Raises:
            sqlite3.Error: If the database cannot be read
        """
        self._ensure_schema()
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def write(self, key: str, value: str) -> None:
        """Insert or replace the value stored under ``key``.

        Raises:
            sqlite3.Error: If the database cannot be written
        """
        self._ensure_schema()
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (key, value)
            )
            conn.commit()
        finally:
            conn.close()


# Global repository instances, one per database path
_repositories: Dict[str, SqliteKeyValueStore] = {}


def get_repository(db_path: str = DEFAULT_DB_PATH) -> SqliteKeyValueStore:
    """Get the shared store instance for ``db_path``.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of SqliteKeyValueStore
    """
    if db_path not in _repositories:
        _repositories[db_path] = SqliteKeyValueStore(db_path)
    return _repositories[db_path]


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the kv_store table if it doesn't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        conn.commit()
    finally:
        conn.close()
