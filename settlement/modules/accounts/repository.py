"""Repository protocol for accounts."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from .models import Account, AccountType


class AccountRepository(Protocol):
    """Abstract repository interface for account persistence.

    Implementations raise ``PersistenceError`` when the store fails and
    return ``None`` for lookups that find nothing.
    """

    async def find_by_id(self, account_id: str) -> Account | None:
        ...

    async def find_by_number(self, account_number: int) -> Account | None:
        ...

    async def create(
        self,
        *,
        name: str,
        account_number: int,
        balance: Decimal,
        account_type: AccountType,
    ) -> Account:
        ...

    async def update(self, account: Account) -> Account | None:
        ...

    async def delete(self, account_id: str) -> bool:
        ...

    async def apply_balance_delta(self, account_id: str, delta: Decimal) -> Account | None:
        """Atomically add ``delta`` to the balance unless it would go negative.

        Returns the updated account, or ``None`` when the account does not
        exist or the resulting balance would be below zero.
        """
        ...
