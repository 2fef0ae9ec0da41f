"""Helpers shared by the SQLAlchemy repositories."""

from __future__ import annotations

import functools
from decimal import Decimal
from typing import Awaitable, Callable, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from settlement.core.exceptions import PersistenceError

P = ParamSpec("P")
R = TypeVar("R")

_CENTS_PER_UNIT = Decimal(100)


def to_cents(amount: Decimal) -> int:
    """Amounts are stored as integer cents so arithmetic in SQL stays exact."""
    return int((amount * _CENTS_PER_UNIT).to_integral_value())


def from_cents(cents: int | None) -> Decimal:
    return (Decimal(cents or 0) / _CENTS_PER_UNIT).quantize(Decimal("0.01"))


def translate_errors(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise SQLAlchemy failures as ``PersistenceError``."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"{func.__qualname__} failed: {exc}") from exc

    return wrapper
