"""Events published on the settlement bus."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .models import Transaction, TransactionType


@dataclass(slots=True, frozen=True)
class TransactionProcessedEvent:
    account_id: str
    transaction_id: str
    amount: Decimal
    transaction_type: TransactionType
    destination_account_id: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionProcessedEvent":
        assert transaction.id is not None, "only persisted transactions can be settled"
        return cls(
            account_id=transaction.account_id,
            transaction_id=transaction.id,
            amount=transaction.amount,
            transaction_type=transaction.transaction_type,
            destination_account_id=transaction.destination_account_id,
        )
