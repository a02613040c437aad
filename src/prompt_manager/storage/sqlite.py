"""Relational prompt storage.

Prompts are rows in the prompts table (see storage/migrations.py) with the
parameter history and metadata block stored as JSON columns.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from prompt_manager.errors import StorageError
from prompt_manager.storage.base import PromptStorage, StoredParameters
from prompt_manager.storage.database import LocalDatabase
from prompt_manager.storage.migrations import run_migrations

logger = logging.getLogger(__name__)


@dataclass
class PromptRecord:
    """A prompt row from the database."""

    id: str
    text: str
    parameters: dict[str, list[Any]]
    metadata: dict[str, Any] | None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> PromptRecord:
        """Create a PromptRecord from a database row."""
        parameters_json = row["parameters"]
        metadata_json = row["metadata"]

        return cls(
            id=row["id"],
            text=row["text"],
            parameters=json.loads(parameters_json) if parameters_json else {},
            metadata=json.loads(metadata_json) if metadata_json else None,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "text": self.text,
            "parameters": self.parameters,
            "metadata": self.metadata,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class SQLiteStorage(PromptStorage):
    """Prompt storage backed by a LocalDatabase.

    Usage:
        storage = SQLiteStorage(LocalDatabase("prompts.db"))
        storage.save("todo", "Remind me to [TASK]")
    """

    def __init__(self, db: LocalDatabase, migrate: bool = True) -> None:
        self.db = db
        if migrate:
            run_migrations(db)

    def get_record(self, prompt_id: str) -> PromptRecord | None:
        """Return the full row for prompt_id, or None."""
        row = self.db.fetchone(
            "SELECT * FROM prompts WHERE id = ?", (self.normalize_id(prompt_id),)
        )
        return PromptRecord.from_row(row) if row else None

    def _require(self, prompt_id: str) -> PromptRecord:
        record = self.get_record(prompt_id)
        if record is None:
            raise StorageError("Prompt not found", self.normalize_id(prompt_id))
        return record

    def load(self, prompt_id: str) -> str:
        return self._require(prompt_id).text

    def save(self, prompt_id: str, text: str) -> None:
        """Save prompt text (upsert by id), keeping any saved parameters."""
        key = self.normalize_id(prompt_id)
        if not key:
            raise StorageError("Prompt id cannot be blank")

        now = datetime.now(UTC).isoformat()
        try:
            self.db.execute(
                """INSERT INTO prompts (id, text, created_at, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET text = excluded.text,
                                                 updated_at = excluded.updated_at""",
                (key, text, now, now),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save prompt: {e}", key) from e
        logger.debug(f"Saved prompt '{key}' to {self.db.db_path}")

    def delete(self, prompt_id: str) -> None:
        key = self.normalize_id(prompt_id)
        cursor = self.db.execute("DELETE FROM prompts WHERE id = ?", (key,))
        if cursor.rowcount == 0:
            raise StorageError("Prompt not found", key)

    def exists(self, prompt_id: str) -> bool:
        row = self.db.fetchone(
            "SELECT 1 FROM prompts WHERE id = ?", (self.normalize_id(prompt_id),)
        )
        return row is not None

    def list_prompts(self) -> list[str]:
        rows = self.db.fetchall("SELECT id FROM prompts ORDER BY id")
        return [row["id"] for row in rows]

    def search(self, query: str) -> list[str]:
        """Match query against id and text (case-insensitive for ASCII)."""
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        rows = self.db.fetchall(
            """SELECT id FROM prompts
               WHERE text LIKE ? ESCAPE '\\' OR id LIKE ? ESCAPE '\\'
               ORDER BY id""",
            (pattern, pattern),
        )
        return [row["id"] for row in rows]

    def load_parameters(self, prompt_id: str) -> StoredParameters:
        record = self.get_record(prompt_id)
        if record is None:
            return StoredParameters()
        values = {token: history for token, history in record.parameters.items() if history}
        return StoredParameters(values=values, metadata=record.metadata)

    def save_parameters(
        self,
        prompt_id: str,
        values: dict[str, list[Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        record = self._require(prompt_id)
        self.db.execute(
            "UPDATE prompts SET parameters = ?, metadata = ?, updated_at = ? WHERE id = ?",
            (
                json.dumps(values),
                json.dumps(metadata) if metadata is not None else None,
                datetime.now(UTC).isoformat(),
                record.id,
            ),
        )
