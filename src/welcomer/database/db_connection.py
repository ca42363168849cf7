"""
Database connection management: one connection per operation.

Design
------
Every ledger operation opens its own short-lived aiosqlite connection
through :class:`DatabaseConnectionContext`. Connections run in autocommit
mode, so each statement is its own transaction, and writers from other
tasks or other processes are serialised by SQLite's own write lock.
Waiting on that lock is bounded by ``busy_timeout``.

Usage
-----
    async with DatabaseConnectionContext(path) as conn:
        cursor = await conn.execute("SELECT ...")
        rows = await cursor.fetchall()
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite

from welcomer.util.logger import get_logger

logger = get_logger("database_connection")

# ── Pragmas applied to each connection when it is opened ─────────────────────
_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",    # safe with WAL; faster than FULL
    "PRAGMA temp_store = MEMORY",
]

DEFAULT_BUSY_TIMEOUT = 5.0


class DatabaseConnectionContext:
    """
    Async context manager yielding an open, configured aiosqlite connection.

    The connection is closed on exit whether or not the body raised.
    """

    def __init__(self, path: Path, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self.path = path
        self.busy_timeout = busy_timeout
        self._conn: aiosqlite.Connection | None = None

    async def __aenter__(self) -> aiosqlite.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self.path, timeout=self.busy_timeout, isolation_level=None)
        try:
            conn.row_factory = aiosqlite.Row
            for pragma in _PRAGMAS:
                # Close each cursor so no statement keeps a read snapshot open
                cursor = await conn.execute(pragma)
                await cursor.close()
        except BaseException:
            await conn.close()
            raise
        self._conn = conn
        return conn

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._conn is None:
            return
        try:
            await self._conn.close()
        finally:
            self._conn = None
