"""Pytest configuration and shared fixtures for prompt-manager tests."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from prompt_manager.config.app import RenderOptions
from prompt_manager.storage.database import LocalDatabase
from prompt_manager.storage.filesystem import FileSystemStorage
from prompt_manager.storage.memory import MemoryStorage
from prompt_manager.storage.migrations import run_migrations
from prompt_manager.storage.sqlite import SQLiteStorage


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db(temp_dir: Path) -> Iterator[LocalDatabase]:
    """Create a temporary database for testing."""
    db_path = temp_dir / "test.db"
    db = LocalDatabase(db_path)
    run_migrations(db)
    yield db
    db.close()


@pytest.fixture
def prompts_dir(temp_dir: Path) -> Path:
    """Create an empty prompts directory."""
    path = temp_dir / "prompts"
    path.mkdir()
    return path


@pytest.fixture
def file_storage(prompts_dir: Path) -> FileSystemStorage:
    """Create file storage rooted at a temp directory."""
    return FileSystemStorage(prompts_dir)


@pytest.fixture
def sqlite_storage(temp_db: LocalDatabase) -> SQLiteStorage:
    """Create relational storage backed by the temp database."""
    return SQLiteStorage(temp_db)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Create empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def default_options() -> RenderOptions:
    """Create default render options."""
    return RenderOptions()
