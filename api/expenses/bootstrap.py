"""
Database bootstrap: connect, verify liveness, ensure the `expenses` table.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core import db as core_db
from core.errors import SchemaError

logger = logging.getLogger(__name__)

SQL_DIR = Path(__file__).with_name("sql")


class DatabaseHelper:
    """
    Startup collaborator. Tests substitute one that never opens a socket.
    """

    async def connect(self, dsn: str) -> core_db.Database:
        return await core_db.connect(dsn)

    def read_sql_file(self, name: str) -> str:
        return (SQL_DIR / f"{name}.sql").read_text(encoding="utf-8")

    async def create_table(self, database: core_db.Database) -> None:
        await database.execute(self.read_sql_file("create-table"))


async def init_database(dsn: str, helper: DatabaseHelper | None = None) -> core_db.Database:
    """
    Return a ready-to-use handle, or raise `DatabaseConnectionError` /
    `SchemaError`. Both are fatal at startup.
    """
    helper = helper or DatabaseHelper()

    database = await helper.connect(dsn)
    logger.info("database_connected")

    try:
        await helper.create_table(database)
    except Exception as exc:
        await database.close()
        raise SchemaError(f"Create table failed: {exc}") from exc

    logger.info("table_ready table=expenses")
    return database
