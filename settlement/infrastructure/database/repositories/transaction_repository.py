"""SQLAlchemy implementation of the transaction repository."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import ensure_utc
from settlement.infrastructure.database.models import TransactionModel
from settlement.modules.transactions.models import (
    StatementQuery,
    StatementSort,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from settlement.modules.transactions.repository import TransactionRepository

from .base import from_cents, to_cents, translate_errors

STATEMENT_COLUMNS = {
    StatementSort.CREATED_AT: TransactionModel.created_at,
    StatementSort.AMOUNT: TransactionModel.amount_cents,
    StatementSort.TRANSACTION_TYPE: TransactionModel.transaction_type,
    StatementSort.STATUS: TransactionModel.status,
}


def _touches(account_id: str):
    return or_(
        TransactionModel.account_id == account_id,
        TransactionModel.destination_account_id == account_id,
    )


class SqlTransactionRepository(TransactionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @translate_errors
    async def find_by_id(self, transaction_id: str) -> Transaction | None:
        stmt = select(TransactionModel).where(TransactionModel.id == transaction_id)
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model else None

    @translate_errors
    async def find_by_account_id(self, account_id: str, limit: int = 50, offset: int = 0) -> Sequence[Transaction]:
        stmt = (
            select(TransactionModel)
            .where(_touches(account_id))
            .order_by(desc(TransactionModel.created_at), TransactionModel.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @translate_errors
    async def find_statement(self, account_id: str, query: StatementQuery) -> Sequence[Transaction]:
        column = STATEMENT_COLUMNS[query.sort_by]
        stmt = (
            select(TransactionModel)
            .where(_touches(account_id))
            .where(TransactionModel.created_at >= ensure_utc(query.start_date))
            .where(TransactionModel.created_at <= ensure_utc(query.end_date))
        )
        if query.transaction_type is not None:
            stmt = stmt.where(TransactionModel.transaction_type == query.transaction_type.value)
        stmt = (
            stmt.order_by(desc(column) if query.descending else column, TransactionModel.id)
            .offset(query.offset)
            .limit(query.limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @translate_errors
    async def count_by_account(self, account_id: str) -> int:
        stmt = select(func.count()).select_from(TransactionModel).where(_touches(account_id))
        return (await self.session.execute(stmt)).scalar_one()

    @translate_errors
    async def create(self, transaction: Transaction) -> Transaction:
        model = TransactionModel(
            account_id=transaction.account_id,
            destination_account_id=transaction.destination_account_id,
            amount_cents=to_cents(transaction.amount),
            transaction_type=transaction.transaction_type.value,
            status=transaction.status.value,
            description=transaction.description,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    @translate_errors
    async def update_status(self, transaction_id: str, status: TransactionStatus) -> None:
        stmt = (
            update(TransactionModel)
            .where(TransactionModel.id == transaction_id)
            .values(status=status.value)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)

    @staticmethod
    def _to_domain(model: TransactionModel) -> Transaction:
        return Transaction(
            id=model.id,
            account_id=model.account_id,
            amount=from_cents(model.amount_cents),
            transaction_type=TransactionType(model.transaction_type),
            status=TransactionStatus(model.status),
            description=model.description,
            destination_account_id=model.destination_account_id,
            created_at=ensure_utc(model.created_at) if model.created_at else None,
            updated_at=ensure_utc(model.updated_at) if model.updated_at else None,
        )
