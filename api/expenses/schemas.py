"""
Expense API schemas (request/response models).
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _none_to_empty(value: object) -> object:
    return [] if value is None else value


# `null` tags decode to an empty list; responses never carry null tags.
Tags = Annotated[list[str], BeforeValidator(_none_to_empty)]


class ExpensePayload(BaseModel):
    # Strict: "100", true or NaN for amount is a bad body, not a coercion.
    # JSON integers still validate as floats.
    model_config = ConfigDict(strict=True)

    # Type-checked but otherwise ignored; the id comes from storage or the path.
    id: int | None = Field(default=None, exclude=True)
    title: str = ""
    amount: float = Field(default=0.0, allow_inf_nan=False)
    note: str = ""
    tags: Tags = Field(default_factory=list)


class Expense(BaseModel):
    id: int
    title: str = ""
    amount: float = 0.0
    note: str = ""
    tags: Tags = Field(default_factory=list)


class ErrorResponse(BaseModel):
    message: str
