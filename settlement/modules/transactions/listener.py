"""Settlement listener: the only writer of account balances."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Protocol

from settlement.core.events import EventBus
from settlement.core.exceptions import PersistenceError
from settlement.modules.accounts.models import Account
from settlement.modules.accounts.repository import AccountRepository

from .events import TransactionProcessedEvent
from .models import TransactionStatus, TransactionType
from .repository import TransactionRepository

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, payload: dict[str, Any]) -> None:
        ...


class TransactionListener:
    """Applies a processed transaction to the balances involved.

    Every balance write goes through ``apply_balance_delta``, a conditional
    update that refuses to take a balance below zero, so two settlements
    racing on one account cannot overdraw it. A settlement that cannot be
    applied marks the transaction FAILED; a transfer whose credit fails has
    its debit reversed first.

    Failures end the invocation and are only logged.
    """

    def __init__(
        self,
        *,
        accounts: AccountRepository,
        transactions: TransactionRepository,
        notifier: Notifier | None = None,
    ) -> None:
        self._accounts = accounts
        self._transactions = transactions
        self._notifier = notifier

    def subscribe(self, event_bus: EventBus) -> None:
        event_bus.subscribe(TransactionProcessedEvent, self.handle)

    async def handle(self, event: TransactionProcessedEvent) -> None:
        logger.info("Handling TransactionProcessedEvent for account %s", event.account_id)
        try:
            touched = await self._settle(event)
        except PersistenceError as exc:
            logger.error("Settlement of transaction %s aborted: %s", event.transaction_id, exc)
            return

        for account in touched:
            await self._notify(account, event)

    async def _settle(self, event: TransactionProcessedEvent) -> list[Account]:
        transaction = await self._transactions.find_by_id(event.transaction_id)
        if transaction is None:
            logger.error("Transaction %s not found; nothing settled", event.transaction_id)
            return []
        if transaction.status is not TransactionStatus.PENDING:
            logger.info(
                "Transaction %s already %s; duplicate event ignored",
                event.transaction_id,
                transaction.status.value,
            )
            return []

        source = await self._accounts.find_by_id(event.account_id)
        if source is None:
            logger.error("Source account %s not found", event.account_id)
            await self._mark_failed(event.transaction_id)
            return []

        if event.transaction_type is TransactionType.DEPOSIT:
            source_delta = event.amount
        else:
            source_delta = -event.amount

        updated_source = await self._accounts.apply_balance_delta(source.id, source_delta)
        if updated_source is None:
            logger.warning(
                "Account %s cannot absorb %s for transaction %s",
                source.id,
                source_delta,
                event.transaction_id,
            )
            await self._mark_failed(event.transaction_id)
            return []
        touched = [updated_source]

        if event.transaction_type is TransactionType.TRANSFER:
            updated_destination = await self._credit_destination(event)
            if updated_destination is None:
                await self._accounts.apply_balance_delta(source.id, event.amount)
                await self._mark_failed(event.transaction_id)
                return []
            touched.append(updated_destination)

        await self._transactions.update_status(event.transaction_id, TransactionStatus.COMPLETED)
        logger.info("Transaction %s completed", event.transaction_id)
        return touched

    async def _credit_destination(self, event: TransactionProcessedEvent) -> Account | None:
        if not event.destination_account_id:
            logger.error("Transfer %s has no destination account", event.transaction_id)
            return None
        updated = await self._accounts.apply_balance_delta(event.destination_account_id, event.amount)
        if updated is None:
            logger.error(
                "Destination account %s not found; reversing debit of transfer %s",
                event.destination_account_id,
                event.transaction_id,
            )
        return updated

    async def _mark_failed(self, transaction_id: str) -> None:
        await self._transactions.update_status(transaction_id, TransactionStatus.FAILED)
        logger.warning("Transaction %s marked as FAILED", transaction_id)

    async def _notify(self, account: Account, event: TransactionProcessedEvent) -> None:
        if self._notifier is None:
            return
        payload = build_notification(account, event)
        try:
            await self._notifier.notify(payload)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Notification for transaction %s failed: %s", event.transaction_id, exc)


def build_notification(account: Account, event: TransactionProcessedEvent) -> dict[str, Any]:
    return {
        "accountId": account.id,
        "transactionId": event.transaction_id,
        "kind": event.transaction_type.value,
        "amount": _money(event.amount),
        "newBalance": _money(account.balance),
    }


def _money(value: Decimal) -> str:
    return f"{value:.2f}"
