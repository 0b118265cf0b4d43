"""Shared response envelope and field types."""

import math
import re
from decimal import Decimal
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, Field, PlainSerializer

from giftcard_api.core.money import MAX_AMOUNT, format_amount

T = TypeVar("T")

# Stored minor units rendered as "50.00"
Money = Annotated[int, PlainSerializer(format_amount, return_type=str)]

# Incoming amounts: positive, at most two decimals
AmountInput = Annotated[Decimal, Field(gt=0, le=MAX_AMOUNT, decimal_places=2)]

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")
PASSWORD_RULE = "Password must be at least 8 characters and contain an uppercase letter, a lowercase letter and a number"


def check_password_strength(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_RULE)
    return value


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class Pagination(BaseModel):
    """Page metadata for list endpoints."""

    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)
