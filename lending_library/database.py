import json
import logging
import os
import sqlite3
from typing import Any, Dict, Optional

from lending_library.config import settings

logger = logging.getLogger(__name__)

# Default database file: LIBRARY_DB_FILE, else library.db in the working directory.
# Tests pass their own file (see conftest.py).
DATABASE_FILE = settings.db_file or "library.db"

SNAPSHOT_COLLECTIONS = ("users", "books", "loans")


def get_db_connection(db_file: Optional[str] = None) -> sqlite3.Connection:
    """Open a connection to the SQLite database."""
    conn = sqlite3.connect(db_file or DATABASE_FILE)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: Optional[str] = None) -> None:
    """Create the snapshot table if it does not exist yet."""
    conn = get_db_connection(db_file)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: Optional[str] = None) -> None:
    create_tables(db_file)


class SnapshotStore:
    """Saves and loads the users/books/loans snapshot as one JSON document.

    Failures are logged and reported through the return value; they never
    propagate, since the in-memory state stays authoritative for the session.
    """

    def __init__(self, db_file: Optional[str] = None, key: Optional[str] = None) -> None:
        self.db_file = db_file or DATABASE_FILE
        self.key = key or settings.snapshot_key
        initialize_database(self.db_file)

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored snapshot, or None if there is none or it is unreadable."""
        try:
            conn = get_db_connection(self.db_file)
            try:
                row = conn.execute("SELECT data FROM snapshots WHERE key = ?", (self.key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to read snapshot {self.key!r}: {e}")
            return None

        if row is None:
            return None
        try:
            data = json.loads(row["data"])
        except json.JSONDecodeError as e:
            logger.error(f"Snapshot {self.key!r} is not valid JSON: {e}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Snapshot {self.key!r} is not an object")
            return None
        return data

    def save(self, snapshot: Dict[str, Any]) -> bool:
        """Write the snapshot. Returns False (and logs) on failure."""
        try:
            payload = json.dumps({name: snapshot.get(name, []) for name in SNAPSHOT_COLLECTIONS}, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Snapshot could not be serialized: {e}")
            return False

        try:
            conn = get_db_connection(self.db_file)
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO snapshots (key, data, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
                    (self.key, payload),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to save snapshot {self.key!r}: {e}")
            return False
        return True

    def clear(self) -> None:
        conn = get_db_connection(self.db_file)
        try:
            conn.execute("DELETE FROM snapshots WHERE key = ?", (self.key,))
            conn.commit()
        finally:
            conn.close()


def migrate_from_json(store: SnapshotStore, json_file: Optional[str] = None) -> bool:
    """Import a legacy ``library_data`` JSON export into an empty store.

    This is a one-time operation: nothing happens if the store already holds
    a snapshot or the file does not exist. Returns True if data was imported.
    """
    json_file = json_file or settings.legacy_json_file
    if store.load() is not None:
        return False
    if not os.path.exists(json_file):
        return False

    try:
        with open(json_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.error(f"Error reading or parsing {json_file}: {e}")
        return False

    if not isinstance(data, dict) or not any(name in data for name in SNAPSHOT_COLLECTIONS):
        logger.warning(f"{json_file} does not look like a library snapshot, skipping")
        return False

    snapshot = {name: data.get(name) or [] for name in SNAPSHOT_COLLECTIONS}
    if not store.save(snapshot):
        return False
    logger.info(
        f"Migrated {len(snapshot['users'])} users, {len(snapshot['books'])} books "
        f"and {len(snapshot['loans'])} loans from {json_file}"
    )
    return True
