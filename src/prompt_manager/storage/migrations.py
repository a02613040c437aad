"""Database migrations for relational prompt storage."""

import logging

from prompt_manager.storage.database import LocalDatabase

logger = logging.getLogger(__name__)

# (version, description, sql); statements are separated by ";"
MIGRATIONS: list[tuple[int, str, str]] = [
    (
        1,
        "Create schema_version table",
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """,
    ),
    (
        2,
        "Create prompts table",
        """
        CREATE TABLE IF NOT EXISTS prompts (
            id TEXT PRIMARY KEY,
            text TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """,
    ),
    (
        3,
        "Add parameter history and metadata columns to prompts",
        """
        ALTER TABLE prompts ADD COLUMN parameters TEXT NOT NULL DEFAULT '{}';
        ALTER TABLE prompts ADD COLUMN metadata TEXT;
        """,
    ),
]


def get_current_version(db: LocalDatabase) -> int:
    """Get current schema version from database."""
    row = db.fetchone(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    if row is None:
        return 0
    row = db.fetchone("SELECT MAX(version) as version FROM schema_version")
    return row["version"] if row and row["version"] else 0


def run_migrations(db: LocalDatabase) -> int:
    """
    Apply pending migrations, each in its own transaction.

    Args:
        db: LocalDatabase instance

    Returns:
        Number of migrations applied
    """
    current_version = get_current_version(db)
    pending = [migration for migration in MIGRATIONS if migration[0] > current_version]

    for version, description, sql in pending:
        logger.debug(f"Applying migration {version}: {description}")
        try:
            with db.transaction() as conn:
                for statement in sql.split(";"):
                    if statement.strip():
                        conn.execute(statement)
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
        except Exception as e:
            logger.error(f"Migration {version} failed: {e}")
            raise

    if pending:
        logger.debug(f"Schema now at version {pending[-1][0]}")
    return len(pending)
