"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns one connection pool. The app creates it once on startup,
shares it across requests, and closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
from typing import Any

import asyncpg

from .errors import DatabaseConnectionError

# What asyncpg raises when the server cannot be reached or refuses us.
CONNECT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    ValueError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
)


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self._pool.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self._pool.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> None:
        """
        Run a statement (INSERT/UPDATE/DDL). No result returned.
        """
        await self._pool.execute(sql, *args)

    async def ping(self) -> None:
        await self._pool.fetchval("SELECT 1")

    async def close(self) -> None:
        await self._pool.close()


async def connect(dsn: str, *, min_size: int = 1, max_size: int = 5) -> Database:
    """
    Open a pool and make sure the server answers.
    """
    try:
        pool = await asyncpg.create_pool(dsn=dsn, min_size=min_size, max_size=max_size)
    except CONNECT_ERRORS as exc:
        raise DatabaseConnectionError(f"Connect to database failed: {exc}") from exc

    db = Database(pool)
    try:
        await db.ping()
    except CONNECT_ERRORS as exc:
        await db.close()
        raise DatabaseConnectionError(f"Ping to database failed: {exc}") from exc
    return db
