"""Persistent key/value state store backed by SQLite.

Every persisted document of the background service (cache, vocabulary, learned words,
blacklist, overrides, settings, installation identity) is stored as one JSON value under
its well-known key. Read/write failures are logged and reported to the caller as a failed
result; callers keep working with their in-memory state and simply try again on the next
mutation.
"""

from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable, Mapping


__all__: list[str] = [
    "CACHE_KEY",
    "CUSTOM_TRANSLATIONS_KEY",
    "IDENTITY_KEY",
    "INCORRECT_TRANSLATIONS_KEY",
    "LEARNED_WORDS_KEY",
    "SETTINGS_KEY",
    "STATE_KEYS",
    "StateStore",
    "StateStoreError",
    "VOCABULARY_KEY",
    "WORD_BLACKLIST_KEY",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CACHE_KEY: Final[str] = "cache_v2"
VOCABULARY_KEY: Final[str] = "vocabulary"
LEARNED_WORDS_KEY: Final[str] = "learnedWords"
WORD_BLACKLIST_KEY: Final[str] = "wordBlacklist"
CUSTOM_TRANSLATIONS_KEY: Final[str] = "customTranslations"
INCORRECT_TRANSLATIONS_KEY: Final[str] = "incorrectTranslations"
SETTINGS_KEY: Final[str] = "settings"
IDENTITY_KEY: Final[str] = "installationIdentity"

STATE_KEYS: Final[tuple[str, ...]] = (
    CACHE_KEY,
    VOCABULARY_KEY,
    LEARNED_WORDS_KEY,
    WORD_BLACKLIST_KEY,
    CUSTOM_TRANSLATIONS_KEY,
    INCORRECT_TRANSLATIONS_KEY,
    SETTINGS_KEY,
    IDENTITY_KEY,
)


class StateStoreError(Exception):
    """The state database could not be opened."""


class StateStore:
    """SQLite key/value store for JSON documents.

    Attributes:
        db_path (Path): Path to the SQLite database file.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the store with the path to the database file.

        Args:
            db_path (str | Path): Path to the SQLite database file.

        Raises:
            StateStoreError: If the database path is empty.
        """
        if str(db_path).strip() == "":
            msg = "The database path is empty."
            raise StateStoreError(msg)

        self.db_path: Path = Path(db_path)
        self._connection: sqlite3.Connection | None = None
        logger.debug("State database path set to: %s", self.db_path)

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    async def open(self) -> None:
        """Open the database in WAL mode and create the state table.

        Raises:
            StateStoreError: If the database cannot be opened or initialized.
        """
        if self._connection is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._connection.execute("PRAGMA journal_mode=WAL")
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            self._connection.commit()
            logger.info("State database opened: %s", self.db_path)
        except (sqlite3.Error, OSError) as err:
            self._connection = None
            msg: str = f"State database initialization failed: {err}"
            logger.critical(msg)
            raise StateStoreError(msg) from err

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is None:
            return
        try:
            self._connection.close()
            logger.info("State database closed")
        except sqlite3.Error as err:
            logger.error("Error closing state database: %s", err)
        finally:
            self._connection = None

    async def load(self, key: str, default: Any = None) -> Any:
        """Load one JSON document.

        Args:
            key (str): Document key.
            default (Any): Value returned when the key is missing, unreadable or the store is closed.

        Returns:
            Any: The decoded document or ``default``.
        """
        if self._connection is None:
            return default
        try:
            row = self._connection.execute("SELECT value FROM state WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as err:
            logger.error("Error loading '%s' from state database: %s", key, err)
            return default
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as err:
            logger.error("Stored value for '%s' is not valid JSON: %s", key, err)
            return default

    async def load_all(self) -> dict[str, Any]:
        """Load every stored document keyed by name; unreadable documents are skipped."""
        if self._connection is None:
            return {}
        try:
            rows = self._connection.execute("SELECT key, value FROM state ORDER BY key").fetchall()
        except sqlite3.Error as err:
            logger.error("Error loading state snapshot: %s", err)
            return {}

        snapshot: dict[str, Any] = {}
        for key, value in rows:
            try:
                snapshot[key] = json.loads(value)
            except json.JSONDecodeError:
                logger.error("Skipping unreadable state document: '%s'", key)
        return snapshot

    async def save(self, key: str, value: Any) -> bool:
        """Store one JSON document, replacing any previous value.

        Returns:
            bool: True if the document was written.
        """
        return await self.save_many({key: value})

    async def save_many(self, documents: Mapping[str, Any]) -> bool:
        """Store several documents in a single transaction.

        Returns:
            bool: True if every document was written.
        """
        if self._connection is None:
            logger.error("State database is not open; %d document(s) not persisted", len(documents))
            return False
        try:
            now: float = time.time()
            rows: list[tuple[str, str, float]] = [
                (key, json.dumps(value, ensure_ascii=False), now) for key, value in documents.items()
            ]
            with self._connection:
                self._connection.executemany(
                    "INSERT OR REPLACE INTO state (key, value, updated_at) VALUES (?, ?, ?)",
                    rows,
                )
        except (sqlite3.Error, TypeError, ValueError) as err:
            logger.error("Error persisting %s: %s", list(documents), err)
            return False
        return True

    async def remove(self, keys: Iterable[str]) -> bool:
        """Delete documents; missing keys are ignored.

        Returns:
            bool: True if the deletion succeeded.
        """
        if self._connection is None:
            return False
        key_list: list[str] = list(keys)
        try:
            with self._connection:
                self._connection.executemany("DELETE FROM state WHERE key = ?", [(key,) for key in key_list])
        except sqlite3.Error as err:
            logger.error("Error removing %s from state database: %s", key_list, err)
            return False
        return True
