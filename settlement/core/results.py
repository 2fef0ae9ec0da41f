"""Tagged success/failure results returned by public operations.

Business-rule failures (missing account, insufficient balance, ...) are
returned as ``Result.failure`` values instead of being raised; callers
translate the ``ErrorCode`` into their own transport-level response.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    ACCOUNT_NOT_FOUND = "account_not_found"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    CONVERSION_FAILED = "conversion_failed"
    PRICE_LOOKUP_FAILED = "price_lookup_failed"
    PERSISTENCE_ERROR = "persistence_error"
    INVALID_REQUEST = "invalid_request"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    SCHEDULE_NOT_FOUND = "schedule_not_found"
    SCHEDULING_FAILED = "scheduling_failed"
    ACCOUNT_HAS_TRANSACTIONS = "account_has_transactions"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an error code with a message."""

    value: T | None = None
    error: ErrorCode | None = None
    message: str | None = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorCode, message: str | None = None) -> "Result[T]":
        return cls(error=error, message=message or error.value)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value of a successful result.

        Calling this on a failure is a programming error.
        """
        if self.error is not None:
            raise ValueError(f"unwrap() on failed result: {self.error.value}: {self.message}")
        return self.value  # type: ignore[return-value]
