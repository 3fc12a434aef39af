"""
Storage error taxonomy.

Startup errors (`DatabaseConnectionError`, `SchemaError`) are fatal to the
process. Runtime errors (`QueryError`, `NotFoundError`) end the current
request with a 500.
"""

from __future__ import annotations


class ExpenseStoreError(RuntimeError):
    pass


class DatabaseConnectionError(ExpenseStoreError):
    """Backend unreachable, bad credentials, or an unusable DSN."""


class SchemaError(ExpenseStoreError):
    """Table bootstrap failed."""


class QueryError(ExpenseStoreError):
    """A runtime statement failed, including malformed parameters."""


class NotFoundError(ExpenseStoreError):
    def __init__(self, expense_id: int) -> None:
        super().__init__(f"Expense {expense_id} not found.")
        self.expense_id = expense_id
