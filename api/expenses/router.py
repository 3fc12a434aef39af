"""
FastAPI router for expense endpoints.

Storage errors are not caught here; the handlers registered in `main.py`
turn them into `{"message": ...}` responses.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, Request, status

from core.errors import QueryError

from . import schemas
from .repository import ExpenseRepository

router = APIRouter()

EXPENSE_ID_RE = re.compile(r"[+-]?[0-9]+")

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse, "description": "Body is not a decodable expense."},
    500: {"model": schemas.ErrorResponse, "description": "Bad id, unknown id, or storage failure."},
}


def get_repository(request: Request) -> ExpenseRepository:
    """Dependency to get the repository installed on the app at startup."""
    return request.app.state.expense_repository


def _parse_expense_id(raw: str) -> int:
    # A non-integer id is a query error (500), not a validation error.
    # ASCII digits only: int() alone would take " 5", "1_0" and non-ASCII digits.
    if EXPENSE_ID_RE.fullmatch(raw) is None:
        raise QueryError(f"Invalid expense id: {raw!r}")
    return int(raw)


@router.post(
    "/expenses",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.Expense,
    responses=ERROR_RESPONSES,
)
async def create_expense(
    payload: schemas.ExpensePayload,
    repository: ExpenseRepository = Depends(get_repository),
) -> schemas.Expense:
    expense_id = await repository.insert(payload)
    return schemas.Expense(id=expense_id, **payload.model_dump())


@router.get("/expenses/{expense_id}", response_model=schemas.Expense, responses=ERROR_RESPONSES)
async def get_expense(
    expense_id: str,
    repository: ExpenseRepository = Depends(get_repository),
) -> schemas.Expense:
    return await repository.get_by_id(_parse_expense_id(expense_id))


@router.put("/expenses/{expense_id}", response_model=schemas.Expense, responses=ERROR_RESPONSES)
async def update_expense(
    expense_id: str,
    payload: schemas.ExpensePayload,
    repository: ExpenseRepository = Depends(get_repository),
) -> schemas.Expense:
    return await repository.update(_parse_expense_id(expense_id), payload)


@router.get("/expenses", response_model=list[schemas.Expense], responses=ERROR_RESPONSES)
async def list_expenses(
    repository: ExpenseRepository = Depends(get_repository),
) -> list[schemas.Expense]:
    """
    Every stored expense, oldest first.
    """
    return await repository.list_all()
