"""
Database schema initialization.

Creates the join ledger table, its indexes and the schema version marker.
"""

import aiosqlite
from welcomer.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the database schema; every statement is idempotent."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and indexes that do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # No AUTOINCREMENT: rows are never deleted, so a new number is max + 1 and an
        # insert suppressed by ON CONFLICT consumes no number.
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_member_joins (
                join_number INTEGER PRIMARY KEY,
                user_id TEXT NOT NULL UNIQUE,
                username TEXT NOT NULL,
                joined_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_guild_member_joins_joined_at ON guild_member_joins(joined_at DESC)"
        )

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
