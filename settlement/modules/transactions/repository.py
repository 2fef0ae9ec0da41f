"""Repository protocols for transactions and scheduled transactions."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import ScheduledTransaction, ScheduledTransactionStatus, StatementQuery, Transaction, TransactionStatus


class TransactionRepository(Protocol):
    async def find_by_id(self, transaction_id: str) -> Transaction | None:
        ...

    async def find_by_account_id(self, account_id: str, limit: int = 50, offset: int = 0) -> Sequence[Transaction]:
        ...

    async def find_statement(self, account_id: str, query: StatementQuery) -> Sequence[Transaction]:
        ...

    async def count_by_account(self, account_id: str) -> int:
        """Transactions that name the account on either side."""
        ...

    async def create(self, transaction: Transaction) -> Transaction:
        ...

    async def update_status(self, transaction_id: str, status: TransactionStatus) -> None:
        ...


class ScheduledTransactionRepository(Protocol):
    async def create(self, scheduled: ScheduledTransaction) -> ScheduledTransaction:
        ...

    async def find_by_transaction_id(self, transaction_id: str) -> ScheduledTransaction | None:
        ...

    async def update_status(self, transaction_id: str, status: ScheduledTransactionStatus) -> None:
        ...
