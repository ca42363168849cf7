"""
Persistent, idempotent join numbers for guild members.

Every member that joins gets a sequential ``join_number`` the first time
they are seen. Leaving and rejoining returns the number they already have.

The ledger holds no in-process locks. ``record_join`` relies on a single
``INSERT ... ON CONFLICT(user_id) DO NOTHING RETURNING`` statement: the
unique index on ``user_id`` decides which concurrent writer creates the row
and the number is allocated by that same insert, so no separate counter can
drift away from the rows. This holds across processes sharing the file too.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import aiosqlite

from welcomer.database.db_connection import DEFAULT_BUSY_TIMEOUT, DatabaseConnectionContext
from welcomer.database.db_schema import SchemaManager
from welcomer.datatypes.join_datatypes import JoinRecord
from welcomer.errors import LedgerInconsistency, StorageUnavailable
from welcomer.repositories.member_join_repo import MemberJoinRepo
from welcomer.util.logger import get_logger

logger = get_logger("join_ledger")

# Database file path
DB_PATH = Path("./data/app.db").resolve()


class JoinLedger:
    """
    Assigns and looks up permanent join numbers.

    Lifecycle:
        1. Call initialize() at program startup
        2. Call record_join() for every member join notification
        3. Call lookup_join_number() wherever the number is needed read-only
    """

    def __init__(self, db_path: Path = DB_PATH, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        self._initialized = False

    def get_connection(self) -> DatabaseConnectionContext:
        """Return a context manager yielding a fresh connection to the ledger database."""
        return DatabaseConnectionContext(self.db_path, self.busy_timeout)

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self, db_path: Path | None = None, busy_timeout: float | None = None) -> bool:
        """
        Create the database file and schema.

        Args:
            db_path: Optional new database location (replaces the current one)
            busy_timeout: Optional new lock wait in seconds

        Returns:
            True if initialization succeeded, False otherwise
        """
        if db_path is not None:
            self.db_path = db_path
        if busy_timeout is not None:
            self.busy_timeout = busy_timeout

        try:
            async with self.get_connection() as db:
                await SchemaManager.initialize_schema(db)
        except (aiosqlite.Error, OSError) as e:
            logger.error("[JOIN LEDGER] Initialization failed for %s: %s", self.db_path, e)
            return False

        self._initialized = True
        logger.info("[JOIN LEDGER] Ledger ready at %s", self.db_path)
        return True

    async def record_join(self, user_id: str | int, username: str) -> int:
        """
        Record a member join and return their join number.

        If the member already has a number (for example they left and came
        back), that number is returned and nothing is written.

        Args:
            user_id: Discord user ID (any stable identifier)
            username: Username at the time of joining

        Returns:
            The member's join number.

        Raises:
            LedgerInconsistency: The insert was suppressed but the existing row could not be read.
            StorageUnavailable: The database raised.
        """
        user_key = str(user_id)
        try:
            async with self.get_connection() as db:
                join_number = await MemberJoinRepo.insert_if_absent(db, user_key, username)
                if join_number is not None:
                    logger.debug("[JOIN LEDGER] Assigned join number %d to %s", join_number, user_key)
                    return join_number

                existing = await MemberJoinRepo.find_by_user(db, user_key)
        except (aiosqlite.Error, OSError) as e:
            logger.error("[JOIN LEDGER] Failed to record member join for %s: %s", user_key, e)
            raise StorageUnavailable(f"Failed to record join for {user_key}: {e}") from e

        if existing is None:
            logger.error("[JOIN LEDGER] Insert for %s was suppressed but no record exists", user_key)
            raise LedgerInconsistency(user_key)

        logger.debug("[JOIN LEDGER] %s rejoined, keeping join number %d", user_key, existing.join_number)
        return existing.join_number

    async def get_record(self, user_id: str | int) -> Optional[JoinRecord]:
        """
        Return the full join record of a member, or None if they never joined.

        Raises:
            StorageUnavailable: The database raised.
        """
        user_key = str(user_id)
        try:
            async with self.get_connection() as db:
                return await MemberJoinRepo.find_by_user(db, user_key)
        except (aiosqlite.Error, OSError) as e:
            logger.error("[JOIN LEDGER] Failed to look up %s: %s", user_key, e)
            raise StorageUnavailable(f"Failed to look up {user_key}: {e}") from e

    async def lookup_join_number(self, user_id: str | int) -> Optional[int]:
        """
        Return a member's join number without claiming one.

        Returns:
            The join number, or None if the member has never joined.
        """
        record = await self.get_record(user_id)
        return record.join_number if record else None

    async def count(self) -> int:
        """Return how many distinct members have ever joined."""
        try:
            async with self.get_connection() as db:
                return await MemberJoinRepo.count(db)
        except (aiosqlite.Error, OSError) as e:
            logger.error("[JOIN LEDGER] Failed to count joins: %s", e)
            raise StorageUnavailable(f"Failed to count joins: {e}") from e


# Global JoinLedger instance
join_ledger = JoinLedger()


def get_join_ledger() -> JoinLedger:
    """Return the global JoinLedger instance."""
    return join_ledger
