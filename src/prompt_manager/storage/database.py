"""SQLite connection handling for the sqlite storage backend."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, cast

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".prompt_manager" / "prompts.db"
MEMORY_DB = ":memory:"


class LocalDatabase:
    """
    Connections to one SQLite database.

    File databases get one connection per thread. An in-memory database
    (":memory:") is a single shared connection, because every new
    connection to it starts from an empty schema.
    """

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize the database.

        Args:
            db_path: Database file, ":memory:", or None for
                ~/.prompt_manager/prompts.db
        """
        self.in_memory = str(db_path) == MEMORY_DB
        if self.in_memory:
            self.db_path = Path(MEMORY_DB)
        else:
            self.db_path = Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._shared: sqlite3.Connection | None = None
        self._shared_lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit; transaction() opens explicit ones
        )
        conn.row_factory = sqlite3.Row
        if not self.in_memory:
            conn.execute("PRAGMA journal_mode = WAL")
        logger.debug(f"Opened SQLite connection to {self.db_path}")
        return conn

    @property
    def connection(self) -> sqlite3.Connection:
        """Connection for the calling thread."""
        if self.in_memory:
            with self._shared_lock:
                if self._shared is None:
                    self._shared = self._connect()
                return self._shared

        conn = getattr(self._local, "connection", None)
        if conn is None:
            conn = self._local.connection = self._connect()
        return cast(sqlite3.Connection, conn)

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        return self.connection.execute(sql, params)

    def fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        return cast(sqlite3.Row | None, self.execute(sql, params).fetchone())

    def fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def table_columns(self, table: str) -> list[str]:
        """Return the column names of table, in schema order."""
        return [row["name"] for row in self.fetchall(f"PRAGMA table_info({table})")]

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run the enclosed statements atomically.

        Usage:
            with db.transaction() as conn:
                conn.execute("UPDATE prompts SET ...")
                conn.execute("INSERT INTO schema_version ...")
        """
        conn = self.connection
        conn.execute("BEGIN")
        try:
            yield conn
        except Exception:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")

    def close(self) -> None:
        """Close the calling thread's connection (or the shared one)."""
        if self.in_memory:
            with self._shared_lock:
                if self._shared is not None:
                    self._shared.close()
                    self._shared = None
            return

        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None
