"""SQLite persistence for user preferences.

The blocking helpers are framework-agnostic; ``PreferenceStore`` wraps them for
use from the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

from errors import PersistenceError

logger = logging.getLogger(__name__)

DB_PATH = Path(__file__).resolve().parent / "recycleright.db"

PathLike = Union[str, Path]


def get_connection(db_path: PathLike = DB_PATH) -> sqlite3.Connection:
    """Create a SQLite connection with dictionary-like rows."""
    connection = sqlite3.connect(db_path)
    connection.row_factory = sqlite3.Row
    return connection


def init_db(db_path: PathLike = DB_PATH) -> None:
    """Create the preferences table if it does not exist yet."""
    with get_connection(db_path) as connection:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS preferences (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        connection.commit()


def get_preference(key: str, db_path: PathLike = DB_PATH) -> Optional[str]:
    with get_connection(db_path) as connection:
        row = connection.execute(
            "SELECT value FROM preferences WHERE key = ?",
            (key,),
        ).fetchone()
    return row["value"] if row else None


def set_preference(key: str, value: str, db_path: PathLike = DB_PATH) -> None:
    """Insert or overwrite one preference value."""
    with get_connection(db_path) as connection:
        connection.execute(
            """
            INSERT INTO preferences (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, value),
        )
        connection.commit()


class PreferenceStore:
    """Async key/value facade over the preferences table.

    Every ``sqlite3.Error`` is re-raised as ``PersistenceError`` so callers only
    handle one failure type.
    """

    def __init__(self, db_path: PathLike = DB_PATH) -> None:
        self.db_path = db_path
        self._initialized = False

    def _ensure_schema(self) -> None:
        if not self._initialized:
            init_db(self.db_path)
            self._initialized = True

    def _get(self, key: str) -> Optional[str]:
        self._ensure_schema()
        return get_preference(key, self.db_path)

    def _set(self, key: str, value: str) -> None:
        self._ensure_schema()
        set_preference(key, value, self.db_path)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._get, key)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read preference {key!r}: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._set, key, value)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not save preference {key!r}: {exc}") from exc
        logger.debug("Saved preference %s", key)
