"""Key/value stores holding the shared history blob."""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

from mru_tabs.exceptions import HistoryStoreError

logger = logging.getLogger(__name__)


class BaseKeyValueStore(ABC):
    """Abstract interface for the persisted key/value blob store.

    There is no transactional primitive: callers read, modify and write back.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Create or overwrite a value."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """All keys starting with ``prefix``."""
        ...


class MemoryKeyValueStore(BaseKeyValueStore):
    """Process-local store, for single-process use and tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqliteKeyValueStore(BaseKeyValueStore):
    """SQLite-backed store shared by every process pointing at the same file.

    Each call opens its own short-lived connection so the read-write window
    stays as small as possible.
    """

    def __init__(self, db_path: Path, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HistoryStoreError(f"Cannot create store directory for {self.db_path}: {e}") from e
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Failed to open history store at {self.db_path}: {e}") from e

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            conn.commit()
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Failed to initialize history store: {e}") from e
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Failed reading key {key!r}: {e}") from e
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Failed writing key {key!r}: {e}") from e
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Failed deleting key {key!r}: {e}") from e
        finally:
            conn.close()

    def keys(self, prefix: str = "") -> list[str]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Failed listing keys: {e}") from e
        finally:
            conn.close()
        return [row[0] for row in rows]
