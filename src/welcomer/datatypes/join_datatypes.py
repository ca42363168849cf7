"""
Data types for the member join ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class JoinRecord:
    """
    One row of the ``guild_member_joins`` table.

    Attributes:
        join_number: Sequential number assigned on the first recorded join; never changes.
        user_id: Discord user snowflake, stored as text.
        username: Username at the time of the first join, kept for historical reference.
        joined_at: When the first join was recorded (UTC).
    """
    join_number: int
    user_id: str
    username: str
    joined_at: datetime

    @staticmethod
    def parse_timestamp(value: str | datetime | None) -> datetime:
        """Parse a SQLite ``CURRENT_TIMESTAMP`` value (UTC, no offset) into an aware datetime."""
        if isinstance(value, datetime):
            parsed = value
        elif value:
            parsed = datetime.fromisoformat(str(value))
        else:
            return datetime.fromtimestamp(0, tz=timezone.utc)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
