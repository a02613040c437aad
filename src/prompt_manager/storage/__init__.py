"""Prompt storage backends.

All backends implement PromptStorage (load/save/delete/exists/list/search
plus parameter persistence):
- FileSystemStorage: text files with JSON parameter side-cars
- SQLiteStorage: rows in a SQLite database
- MemoryStorage: plain dicts
"""

from __future__ import annotations

from pathlib import Path

from prompt_manager.config.app import StorageSettings
from prompt_manager.storage.base import PromptStorage, StoredParameters
from prompt_manager.storage.database import LocalDatabase
from prompt_manager.storage.filesystem import FileSystemStorage
from prompt_manager.storage.memory import MemoryStorage
from prompt_manager.storage.sqlite import PromptRecord, SQLiteStorage


def create_storage(settings: StorageSettings) -> PromptStorage:
    """Build the storage backend selected by settings.

    Raises:
        ConfigurationError: If the filesystem backend's directory is missing
    """
    if settings.backend == "sqlite":
        return SQLiteStorage(LocalDatabase(settings.database_path))
    if settings.backend == "memory":
        return MemoryStorage()
    return FileSystemStorage(
        Path(settings.prompts_dir).expanduser(),
        prompt_extension=settings.prompt_extension,
        params_extension=settings.params_extension,
    )


__all__ = [
    "FileSystemStorage",
    "LocalDatabase",
    "MemoryStorage",
    "PromptRecord",
    "PromptStorage",
    "SQLiteStorage",
    "StoredParameters",
    "create_storage",
]
