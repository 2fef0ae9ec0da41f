"""SQLAlchemy implementation of the scheduled transaction repository."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import ensure_utc
from settlement.infrastructure.database.models import ScheduledTransactionModel
from settlement.modules.transactions.models import ScheduledTransaction, ScheduledTransactionStatus
from settlement.modules.transactions.repository import ScheduledTransactionRepository

from .base import translate_errors


class SqlScheduledTransactionRepository(ScheduledTransactionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @translate_errors
    async def create(self, scheduled: ScheduledTransaction) -> ScheduledTransaction:
        model = ScheduledTransactionModel(
            transaction_id=scheduled.transaction_id,
            scheduled_at=ensure_utc(scheduled.scheduled_at),
            status=scheduled.status.value,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    @translate_errors
    async def find_by_transaction_id(self, transaction_id: str) -> ScheduledTransaction | None:
        stmt = select(ScheduledTransactionModel).where(ScheduledTransactionModel.transaction_id == transaction_id)
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model else None

    @translate_errors
    async def update_status(self, transaction_id: str, status: ScheduledTransactionStatus) -> None:
        stmt = (
            update(ScheduledTransactionModel)
            .where(ScheduledTransactionModel.transaction_id == transaction_id)
            .values(status=status.value)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)

    @staticmethod
    def _to_domain(model: ScheduledTransactionModel) -> ScheduledTransaction:
        return ScheduledTransaction(
            id=model.id,
            transaction_id=model.transaction_id,
            scheduled_at=ensure_utc(model.scheduled_at),
            status=ScheduledTransactionStatus(model.status),
            created_at=ensure_utc(model.created_at) if model.created_at else None,
            updated_at=ensure_utc(model.updated_at) if model.updated_at else None,
        )
