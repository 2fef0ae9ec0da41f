"""Domain models for transactions and their schedules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from settlement.core.clock import ensure_utc
from settlement.core.exceptions import InvalidTransactionError

CENTS = Decimal("0.01")


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    TRANSFER = "TRANSFER"

    @property
    def debits_source(self) -> bool:
        return self in (TransactionType.WITHDRAW, TransactionType.TRANSFER)


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ScheduledTransactionStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"


class CurrencyType(str, Enum):
    REAL = "BRL"
    AMERICAN_DOLLAR = "USD"
    EURO = "EUR"


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(slots=True, frozen=True)
class Transaction:
    account_id: str
    amount: Decimal
    transaction_type: TransactionType
    status: TransactionStatus
    description: Optional[str] = None
    destination_account_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise InvalidTransactionError("Transaction amount must be greater than zero")
        if self.amount != self.amount.quantize(CENTS):
            raise InvalidTransactionError("Transaction amount must have at most two decimal places")
        if self.transaction_type is TransactionType.TRANSFER:
            if not self.destination_account_id:
                raise InvalidTransactionError("Transfers require a destination account")
        elif self.destination_account_id is not None:
            raise InvalidTransactionError(
                f"{self.transaction_type.value} transactions cannot have a destination account"
            )

    @classmethod
    def create(
        cls,
        account_id: str,
        amount: Decimal,
        transaction_type: TransactionType,
        description: Optional[str] = None,
        destination_account_id: Optional[str] = None,
    ) -> "Transaction":
        """Build a new, not yet persisted, PENDING transaction."""
        return cls(
            account_id=account_id,
            amount=amount,
            transaction_type=transaction_type,
            status=TransactionStatus.PENDING,
            description=description,
            destination_account_id=destination_account_id,
        )


@dataclass(slots=True, frozen=True)
class ScheduledTransaction:
    transaction_id: str
    scheduled_at: datetime
    status: ScheduledTransactionStatus
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, transaction_id: str, scheduled_at: datetime) -> "ScheduledTransaction":
        return cls(
            transaction_id=transaction_id,
            scheduled_at=ensure_utc(scheduled_at),
            status=ScheduledTransactionStatus.PENDING,
        )

    @property
    def is_pending(self) -> bool:
        return self.status is ScheduledTransactionStatus.PENDING

    def is_due(self, now: datetime) -> bool:
        return self.scheduled_at <= now


@dataclass(slots=True)
class CreateTransactionRequest:
    account_id: str
    amount: Decimal
    transaction_type: TransactionType
    currency: CurrencyType = CurrencyType.REAL
    destination_account_id: Optional[str] = None
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class StatementSort(str, Enum):
    CREATED_AT = "created_at"
    AMOUNT = "amount"
    TRANSACTION_TYPE = "transaction_type"
    STATUS = "status"


@dataclass(slots=True, frozen=True)
class StatementQuery:
    """Filters for an account statement; ``start_date`` and ``end_date`` are inclusive."""

    start_date: datetime
    end_date: datetime
    transaction_type: Optional[TransactionType] = None
    limit: int = 10
    offset: int = 0
    sort_by: StatementSort = StatementSort.CREATED_AT
    descending: bool = True
