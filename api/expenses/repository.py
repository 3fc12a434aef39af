"""
Expense persistence.

`ExpenseRepository` is the capability the HTTP layer depends on. The app
factory picks the backend: `PostgresExpenseRepository` in production,
`InMemoryExpenseRepository` for tests and local runs without a database.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import asyncpg

from core.db import Database
from core.errors import NotFoundError, QueryError

from .schemas import Expense, ExpensePayload

# Anything asyncpg can raise mid-request: server errors, client-side
# argument encoding errors, driver state errors, dropped connections.
QUERY_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    asyncpg.exceptions.InternalClientError,
    OSError,
    asyncio.TimeoutError,
)


def _row_to_expense(row: dict[str, Any]) -> Expense:
    return Expense(
        id=int(row["id"]),
        title=row["title"] or "",
        amount=float(row["amount"] or 0.0),
        note=row["note"] or "",
        tags=list(row["tags"] or []),
    )


class ExpenseRepository(ABC):
    @abstractmethod
    async def insert(self, expense: ExpensePayload) -> int:
        """Store a new expense and return the id assigned to it."""

    @abstractmethod
    async def get_by_id(self, expense_id: int) -> Expense:
        """Raise `NotFoundError` when no row has this id."""

    @abstractmethod
    async def update(self, expense_id: int, expense: ExpensePayload) -> Expense:
        """Replace every field but the id; return the stored result."""

    @abstractmethod
    async def list_all(self) -> list[Expense]:
        ...


class PostgresExpenseRepository(ExpenseRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def insert(self, expense: ExpensePayload) -> int:
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO expenses (title, amount, note, tags)
                VALUES ($1, $2, $3, $4)
                RETURNING id
                """,
                expense.title,
                expense.amount,
                expense.note,
                expense.tags,
            )
        except QUERY_ERRORS as exc:
            raise QueryError(str(exc)) from exc
        if row is None or "id" not in row:
            raise QueryError("Failed to insert expense.")
        return int(row["id"])

    async def get_by_id(self, expense_id: int) -> Expense:
        try:
            row = await self._db.fetch_one(
                """
                SELECT id, title, amount, note, tags
                FROM expenses
                WHERE id = $1
                """,
                expense_id,
            )
        except QUERY_ERRORS as exc:
            raise QueryError(str(exc)) from exc
        if row is None:
            raise NotFoundError(expense_id)
        return _row_to_expense(row)

    async def update(self, expense_id: int, expense: ExpensePayload) -> Expense:
        try:
            row = await self._db.fetch_one(
                """
                UPDATE expenses
                SET title = $1,
                    amount = $2,
                    note = $3,
                    tags = $4
                WHERE id = $5
                RETURNING id, title, amount, note, tags
                """,
                expense.title,
                expense.amount,
                expense.note,
                expense.tags,
                expense_id,
            )
        except QUERY_ERRORS as exc:
            raise QueryError(str(exc)) from exc
        if row is None:
            raise NotFoundError(expense_id)
        return _row_to_expense(row)

    async def list_all(self) -> list[Expense]:
        try:
            rows = await self._db.fetch_all(
                """
                SELECT id, title, amount, note, tags
                FROM expenses
                ORDER BY id
                """
            )
        except QUERY_ERRORS as exc:
            raise QueryError(str(exc)) from exc
        return [_row_to_expense(row) for row in rows]


class InMemoryExpenseRepository(ExpenseRepository):
    """
    Dict-backed stand-in with the same id and not-found semantics as the
    SERIAL column. Safe for concurrent requests on one event loop.
    """

    def __init__(self) -> None:
        self._rows: dict[int, Expense] = {}
        self._next_id = 1

    async def insert(self, expense: ExpensePayload) -> int:
        expense_id = self._next_id
        self._next_id += 1
        self._rows[expense_id] = Expense(id=expense_id, **expense.model_dump())
        return expense_id

    async def get_by_id(self, expense_id: int) -> Expense:
        row = self._rows.get(expense_id)
        if row is None:
            raise NotFoundError(expense_id)
        return row.model_copy(deep=True)

    async def update(self, expense_id: int, expense: ExpensePayload) -> Expense:
        if expense_id not in self._rows:
            raise NotFoundError(expense_id)
        updated = Expense(id=expense_id, **expense.model_dump())
        self._rows[expense_id] = updated
        return updated.model_copy(deep=True)

    async def list_all(self) -> list[Expense]:
        return [self._rows[k].model_copy(deep=True) for k in sorted(self._rows)]
