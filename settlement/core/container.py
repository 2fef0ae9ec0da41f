"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from settlement.core.clock import Clock, SystemClock
from settlement.core.config import Settings, get_settings
from settlement.core.events import EventBus
from settlement.infrastructure.database.repositories import (
    SqlAccountRepository,
    SqlScheduledTransactionRepository,
    SqlTransactionRepository,
)
from settlement.infrastructure.database.session import get_session_factory
from settlement.infrastructure.gateways.currency_gateway import HttpCurrencyGateway
from settlement.infrastructure.queue.database_queue import DatabaseTransactionQueue
from settlement.infrastructure.queue.worker import QueueWorker
from settlement.modules.transactions.currency import CurrencyConversionService, PriceLookup
from settlement.modules.transactions.listener import Notifier, TransactionListener
from settlement.modules.transactions.processor import TransactionProcessor
from settlement.modules.transactions.scheduling import TransactionQueue, TransactionScheduler
from settlement.modules.transactions.service import TransactionQueryService, TransactionService
from settlement.modules.transactions.usecase import CreateTransaction


@dataclass(slots=True)
class TransactionComponents:
    """Everything one unit of work needs, bound to a single session and bus."""

    event_bus: EventBus
    create_transaction: CreateTransaction
    transaction_service: TransactionService
    processor: TransactionProcessor
    listener: TransactionListener
    queries: TransactionQueryService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession] = field(default_factory=get_session_factory)
    price_lookup: Optional[PriceLookup] = None
    notifier: Optional[Notifier] = None
    clock: Clock = field(default_factory=SystemClock)
    redis_queue: Optional[TransactionQueue] = None

    def __post_init__(self) -> None:
        if self.price_lookup is None:
            self.price_lookup = HttpCurrencyGateway(
                self.settings.currency.api_base_url,
                timeout_seconds=self.settings.currency.timeout_seconds,
            )

    @property
    def engine(self) -> AsyncEngine:
        return self.session_factory.kw["bind"]

    def transaction_queue(self, session: AsyncSession) -> TransactionQueue:
        if self.settings.queue.backend == "redis":
            if self.redis_queue is None:
                from settlement.infrastructure.queue.arq_queue import ArqTransactionQueue

                self.redis_queue = ArqTransactionQueue(self.settings.queue.redis_url, self.settings.queue.queue_name)
            return self.redis_queue
        return DatabaseTransactionQueue.with_session(session, self.settings.queue.queue_name, self.clock)

    def transaction_components(self, session: AsyncSession) -> TransactionComponents:
        accounts = SqlAccountRepository(session)
        transactions = SqlTransactionRepository(session)
        scheduled = SqlScheduledTransactionRepository(session)

        event_bus = EventBus()
        listener = TransactionListener(accounts=accounts, transactions=transactions, notifier=self.notifier)
        listener.subscribe(event_bus)

        assert self.price_lookup is not None
        create_transaction = CreateTransaction(
            transactions=transactions,
            scheduled_transactions=scheduled,
            accounts=accounts,
            conversion=CurrencyConversionService(self.price_lookup),
            scheduler=TransactionScheduler(self.transaction_queue(session), self.clock),
            event_bus=event_bus,
            settlement_currency=self.settings.settlement_currency,
        )
        transaction_service = TransactionService(
            transactions=transactions,
            scheduled_transactions=scheduled,
            event_bus=event_bus,
            clock=self.clock,
        )
        return TransactionComponents(
            event_bus=event_bus,
            create_transaction=create_transaction,
            transaction_service=transaction_service,
            processor=TransactionProcessor(transaction_service),
            listener=listener,
            queries=TransactionQueryService(transactions),
        )

    def processor_for(self, session: AsyncSession) -> TransactionProcessor:
        return self.transaction_components(session).processor

    def build_queue_worker(self) -> QueueWorker:
        queue = self.settings.queue
        return QueueWorker(
            self.session_factory,
            self.processor_for,
            queue_name=queue.queue_name,
            clock=self.clock,
            poll_interval_seconds=queue.poll_interval_seconds,
            batch_size=queue.batch_size,
            max_attempts=queue.max_attempts,
            retry_backoff_seconds=queue.retry_backoff_seconds,
        )

    async def aclose(self) -> None:
        if isinstance(self.price_lookup, HttpCurrencyGateway):
            await self.price_lookup.aclose()
        close = getattr(self.redis_queue, "close", None)
        if close is not None:
            await close()


@lru_cache()
def get_container() -> ApplicationContainer:
    from settlement.interfaces.ws.manager import manager

    return ApplicationContainer(settings=get_settings(), notifier=manager)


__all__ = ["ApplicationContainer", "TransactionComponents", "get_container"]
