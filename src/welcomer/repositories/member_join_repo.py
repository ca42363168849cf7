"""
Persistent storage for the member join ledger.

Every statement here is a single autocommitted statement; callers supply
the connection.
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from welcomer.datatypes.join_datatypes import JoinRecord
from welcomer.util.logger import get_logger

logger = get_logger("member_join_repo")


class MemberJoinRepo:
    """Low-level access to the ``guild_member_joins`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def insert_if_absent(
        conn: aiosqlite.Connection,
        user_id: str,
        username: str,
    ) -> Optional[int]:
        """
        Insert a join row unless ``user_id`` already has one.

        Returns the newly allocated join number, or None when the unique
        constraint on ``user_id`` suppressed the insert.
        """
        async with conn.execute(
            """
            INSERT INTO guild_member_joins (user_id, username, joined_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(user_id) DO NOTHING
            RETURNING join_number
            """,
            (user_id, username),
        ) as cursor:
            rows = await cursor.fetchall()
        if not rows:
            return None
        return int(rows[0][0])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def find_by_user(
        conn: aiosqlite.Connection,
        user_id: str,
    ) -> Optional[JoinRecord]:
        """Return the join row for ``user_id``, or None if it never joined."""
        async with conn.execute(
            "SELECT join_number, user_id, username, joined_at "
            "FROM guild_member_joins WHERE user_id = ? LIMIT 1",
            (user_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return JoinRecord(
            join_number=int(row[0]),
            user_id=str(row[1]),
            username=str(row[2]),
            joined_at=JoinRecord.parse_timestamp(row[3]),
        )

    @staticmethod
    async def count(conn: aiosqlite.Connection) -> int:
        """Return how many distinct members have ever joined."""
        async with conn.execute("SELECT COUNT(*) FROM guild_member_joins") as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row else 0
