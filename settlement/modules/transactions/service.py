"""Domain services for scheduled settlement and transaction queries."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

from settlement.core.clock import Clock, SystemClock
from settlement.core.events import EventBus
from settlement.core.exceptions import PersistenceError
from settlement.core.results import ErrorCode, Result

from .events import TransactionProcessedEvent
from .models import ScheduledTransactionStatus, Transaction
from .repository import ScheduledTransactionRepository, TransactionRepository

logger = logging.getLogger(__name__)


class ProcessOutcome(str, Enum):
    SETTLED = "settled"
    ALREADY_PROCESSED = "already_processed"
    NOT_DUE = "not_due"


class TransactionService:
    """Runs a due scheduled transaction through settlement, at most once."""

    def __init__(
        self,
        *,
        transactions: TransactionRepository,
        scheduled_transactions: ScheduledTransactionRepository,
        event_bus: EventBus,
        clock: Clock | None = None,
    ) -> None:
        self._transactions = transactions
        self._scheduled = scheduled_transactions
        self._event_bus = event_bus
        self._clock = clock or SystemClock()

    async def process_schedule_transaction(self, transaction_id: str) -> Result[ProcessOutcome]:
        try:
            transaction = await self._transactions.find_by_id(transaction_id)
        except PersistenceError as exc:
            logger.error("Could not load transaction %s: %s", transaction_id, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        if transaction is None:
            logger.error("Transaction %s not found", transaction_id)
            return Result.failure(ErrorCode.TRANSACTION_NOT_FOUND, f"Transaction {transaction_id} not found")

        try:
            scheduled = await self._scheduled.find_by_transaction_id(transaction_id)
        except PersistenceError as exc:
            logger.error("Could not load schedule of transaction %s: %s", transaction_id, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        if scheduled is None:
            logger.error("Scheduled transaction for %s not found", transaction_id)
            return Result.failure(ErrorCode.SCHEDULE_NOT_FOUND, f"No schedule for transaction {transaction_id}")

        if not scheduled.is_pending:
            logger.info("Scheduled transaction for %s already processed; skipping", transaction_id)
            return Result.success(ProcessOutcome.ALREADY_PROCESSED)

        now = self._clock.now()
        if not scheduled.is_due(now):
            logger.info(
                "Scheduled transaction for %s is not due until %s; skipping",
                transaction_id,
                scheduled.scheduled_at.isoformat(),
            )
            return Result.success(ProcessOutcome.NOT_DUE)

        # The flip must land before publishing; a redelivery checks it in the guard above.
        try:
            await self._scheduled.update_status(transaction_id, ScheduledTransactionStatus.PROCESSED)
        except PersistenceError as exc:
            logger.error("Could not mark schedule of %s as processed: %s", transaction_id, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))

        await self._event_bus.publish(TransactionProcessedEvent.from_transaction(transaction))
        logger.info("Scheduled transaction %s published for settlement", transaction_id)
        return Result.success(ProcessOutcome.SETTLED)


class TransactionQueryService:
    def __init__(self, transactions: TransactionRepository) -> None:
        self._transactions = transactions

    async def get_transaction(self, transaction_id: str) -> Result[Transaction]:
        try:
            transaction = await self._transactions.find_by_id(transaction_id)
        except PersistenceError as exc:
            logger.error("It was not possible to retrieve the transaction %s: %s", transaction_id, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        if transaction is None:
            return Result.failure(ErrorCode.TRANSACTION_NOT_FOUND, f"Transaction {transaction_id} not found")
        return Result.success(transaction)

    async def list_by_account(self, account_id: str, limit: int = 50, offset: int = 0) -> Result[Sequence[Transaction]]:
        try:
            rows = await self._transactions.find_by_account_id(account_id, limit, offset)
        except PersistenceError as exc:
            logger.error("It was not possible to list transactions of %s: %s", account_id, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        return Result.success(rows)
