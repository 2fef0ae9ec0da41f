"""Domain models for accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    CONTA_CORRENTE = "CONTA CORRENTE"
    CONTA_POUPANCA = "CONTA POUPANCA"


@dataclass(slots=True, frozen=True)
class Account:
    id: str
    name: str
    account_number: int
    balance: Decimal
    account_type: AccountType
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_funds_for(self, amount: Decimal) -> bool:
        return self.balance >= amount


def is_valid_balance(balance: Decimal) -> bool:
    return balance >= 0 and balance == balance.quantize(Decimal("0.01"))


@dataclass(slots=True)
class AccountCreateInput:
    name: str
    account_number: int
    balance: Decimal
    account_type: AccountType


# Sentinel used to differentiate between "not provided" and explicit None.
UNSET = object()


@dataclass(slots=True)
class AccountUpdateInput:
    name: str | object = UNSET
    account_number: int | object = UNSET
    balance: Decimal | object = UNSET
    account_type: AccountType | object = UNSET
