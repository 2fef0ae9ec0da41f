"""Transaction creation: validation, conversion, persistence and dispatch."""

from __future__ import annotations

import logging
from typing import Optional

from settlement.core.events import EventBus
from settlement.core.exceptions import InvalidTransactionError, PersistenceError, QueueError
from settlement.core.results import ErrorCode, Result
from settlement.modules.accounts.models import Account
from settlement.modules.accounts.repository import AccountRepository

from .currency import CurrencyConversionService
from .events import TransactionProcessedEvent
from .models import (
    CurrencyType,
    CreateTransactionRequest,
    ScheduledTransaction,
    Transaction,
    TransactionType,
    round_money,
)
from .repository import ScheduledTransactionRepository, TransactionRepository
from .scheduling import TransactionScheduler

logger = logging.getLogger(__name__)


class CreateTransaction:
    """Validates a movement and persists it as PENDING.

    Transactions without ``scheduled_at`` are settled before ``handle``
    returns by publishing ``TransactionProcessedEvent`` on the bus; scheduled
    ones get a ``ScheduledTransaction`` and a delayed queue job instead.
    """

    def __init__(
        self,
        *,
        transactions: TransactionRepository,
        scheduled_transactions: ScheduledTransactionRepository,
        accounts: AccountRepository,
        conversion: CurrencyConversionService,
        scheduler: TransactionScheduler,
        event_bus: EventBus,
        settlement_currency: str = CurrencyType.REAL.value,
    ) -> None:
        self._transactions = transactions
        self._scheduled = scheduled_transactions
        self._accounts = accounts
        self._conversion = conversion
        self._scheduler = scheduler
        self._event_bus = event_bus
        self._settlement_currency = settlement_currency

    async def handle(self, request: CreateTransactionRequest) -> Result[Transaction]:
        logger.info(
            "Creating %s transaction for account %s (%s %s)",
            request.transaction_type.value,
            request.account_id,
            request.amount,
            request.currency.value,
        )

        rejection = self._check_request(request)
        if rejection is not None:
            logger.warning("Rejected transaction request: %s", rejection)
            return Result.failure(ErrorCode.INVALID_REQUEST, rejection)

        amount = request.amount
        if request.currency.value != self._settlement_currency:
            converted = await self._conversion.convert_currency(
                amount, request.currency.value, self._settlement_currency
            )
            if converted.is_failure:
                logger.error("Error converting currency: %s", converted.message)
                return Result.failure(ErrorCode.CONVERSION_FAILED, "Error converting currency")
            amount = converted.unwrap()

        origin = await self._load_account(request.account_id, "origin")
        if origin.is_failure:
            return Result.failure(origin.error, origin.message)  # type: ignore[arg-type]
        origin_account = origin.unwrap()

        if request.transaction_type is TransactionType.TRANSFER:
            destination = await self._load_account(request.destination_account_id, "destination")
            if destination.is_failure:
                return Result.failure(destination.error, destination.message)  # type: ignore[arg-type]

        # Advisory only: the authoritative check is the conditional debit at settlement.
        if request.transaction_type.debits_source and not origin_account.has_funds_for(amount):
            logger.warning(
                "Insufficient balance on account %s: %s < %s",
                origin_account.id,
                origin_account.balance,
                amount,
            )
            return Result.failure(ErrorCode.INSUFFICIENT_BALANCE, "Insufficient balance to make the transaction")

        try:
            transaction = Transaction.create(
                request.account_id,
                amount,
                request.transaction_type,
                description=request.description,
                destination_account_id=request.destination_account_id,
            )
        except InvalidTransactionError as exc:
            logger.warning("Rejected transaction request: %s", exc)
            return Result.failure(ErrorCode.INVALID_REQUEST, str(exc))

        try:
            created = await self._transactions.create(transaction)
        except PersistenceError as exc:
            logger.error("Error when creating transaction: %s", exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, "Error when creating transaction")
        logger.info("Transaction %s created as PENDING", created.id)

        if request.scheduled_at is not None:
            return await self._schedule(created, request)

        await self._event_bus.publish(TransactionProcessedEvent.from_transaction(created))
        return Result.success(created)

    async def _schedule(self, transaction: Transaction, request: CreateTransactionRequest) -> Result[Transaction]:
        assert transaction.id is not None and request.scheduled_at is not None
        try:
            await self._scheduled.create(ScheduledTransaction.create(transaction.id, request.scheduled_at))
            await self._scheduler.schedule_transaction(transaction.id, request.scheduled_at)
        except (PersistenceError, QueueError) as exc:
            # No retry: the transaction stays PENDING with no due job.
            logger.warning(
                "Transaction %s persisted but could not be scheduled; it will remain PENDING: %s",
                transaction.id,
                exc,
            )
            return Result.failure(
                ErrorCode.SCHEDULING_FAILED,
                f"Transaction {transaction.id} could not be scheduled",
            )
        logger.info("Transaction %s scheduled for %s", transaction.id, request.scheduled_at.isoformat())
        return Result.success(transaction)

    async def _load_account(self, account_id: Optional[str], role: str) -> Result[Account]:
        logger.info("Finding %s account by id: %s", role, account_id)
        try:
            account = await self._accounts.find_by_id(account_id) if account_id else None
        except PersistenceError as exc:
            logger.error("It was not possible to retrieve the %s account: %s", role, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, f"It was not possible to retrieve the {role} account")
        if account is None:
            logger.warning("%s account with id %s not found", role.capitalize(), account_id)
            return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, f"{role.capitalize()} account does not exist")
        return Result.success(account)

    def _check_request(self, request: CreateTransactionRequest) -> str | None:
        if request.amount <= 0:
            return "Amount must be greater than zero"
        if request.currency.value == self._settlement_currency and request.amount != round_money(request.amount):
            return "Amount must have at most two decimal places"
        if request.transaction_type is TransactionType.TRANSFER:
            if not request.destination_account_id:
                return "Destination account is required for transfers"
            if request.destination_account_id == request.account_id:
                return "Source and destination accounts must differ"
        elif request.destination_account_id is not None:
            return "Only transfers accept a destination account"
        return None
