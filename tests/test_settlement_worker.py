"""Tests for the scheduled settlement worker."""

from datetime import timedelta
from decimal import Decimal

from settlement.core.clock import FrozenClock
from settlement.core.events import EventBus
from settlement.core.results import ErrorCode
from settlement.modules.transactions.events import TransactionProcessedEvent
from settlement.modules.transactions.models import (
    ScheduledTransaction,
    ScheduledTransactionStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from settlement.modules.transactions.processor import TransactionProcessor
from settlement.modules.transactions.service import ProcessOutcome, TransactionService

from .conftest import NOW
from .fakes import FailingScheduledTransactionRepository, InMemoryTransactionRepository


class TestProcessScheduleTransaction:
    async def test_early_delivery_is_a_no_op(
        self, make_account, submit, settle, balance_of, load_transaction, load_schedule
    ) -> None:
        account = await make_account("100.00")
        created = (
            await submit(
                account_id=account.id,
                amount=Decimal("25.00"),
                transaction_type=TransactionType.DEPOSIT,
                scheduled_at=NOW + timedelta(hours=1),
            )
        ).unwrap()

        result = await settle(created.id)

        assert result.unwrap() is ProcessOutcome.NOT_DUE
        assert (await load_schedule(created.id)).status is ScheduledTransactionStatus.PENDING
        assert (await load_transaction(created.id)).status is TransactionStatus.PENDING
        assert await balance_of(account.id) == Decimal("100.00")

    async def test_due_transaction_settles_once(
        self, make_account, submit, settle, balance_of, load_transaction, load_schedule, clock: FrozenClock
    ) -> None:
        account = await make_account("100.00")
        created = (
            await submit(
                account_id=account.id,
                amount=Decimal("25.00"),
                transaction_type=TransactionType.DEPOSIT,
                scheduled_at=NOW + timedelta(hours=1),
            )
        ).unwrap()
        clock.advance(timedelta(hours=1))

        first = await settle(created.id)
        second = await settle(created.id)

        assert first.unwrap() is ProcessOutcome.SETTLED
        assert second.unwrap() is ProcessOutcome.ALREADY_PROCESSED
        assert (await load_schedule(created.id)).status is ScheduledTransactionStatus.PROCESSED
        assert (await load_transaction(created.id)).status is TransactionStatus.COMPLETED
        assert await balance_of(account.id) == Decimal("125.00")

    async def test_scheduled_transfer(self, make_account, submit, settle, balance_of, clock: FrozenClock) -> None:
        source = await make_account("500.00")
        destination = await make_account("0.00")
        created = (
            await submit(
                account_id=source.id,
                amount=Decimal("200.00"),
                transaction_type=TransactionType.TRANSFER,
                destination_account_id=destination.id,
                scheduled_at=NOW + timedelta(minutes=10),
            )
        ).unwrap()
        clock.advance(timedelta(minutes=30))

        assert (await settle(created.id)).unwrap() is ProcessOutcome.SETTLED
        assert await balance_of(source.id) == Decimal("300.00")
        assert await balance_of(destination.id) == Decimal("200.00")

    async def test_unknown_transaction(self, settle) -> None:
        result = await settle("does-not-exist")

        assert result.error is ErrorCode.TRANSACTION_NOT_FOUND

    async def test_immediate_transaction_has_no_schedule(self, make_account, submit, settle) -> None:
        account = await make_account("100.00")
        created = (
            await submit(account_id=account.id, amount=Decimal("1.00"), transaction_type=TransactionType.DEPOSIT)
        ).unwrap()

        result = await settle(created.id)

        assert result.error is ErrorCode.SCHEDULE_NOT_FOUND

    async def test_flip_failure_publishes_nothing(self, clock: FrozenClock) -> None:
        transaction = Transaction(
            id="tx-1",
            account_id="acc-1",
            amount=Decimal("10.00"),
            transaction_type=TransactionType.DEPOSIT,
            status=TransactionStatus.PENDING,
        )
        scheduled = ScheduledTransaction.create("tx-1", NOW - timedelta(minutes=1))
        published: list[TransactionProcessedEvent] = []

        async def record(event: TransactionProcessedEvent) -> None:
            published.append(event)

        bus = EventBus()
        bus.subscribe(TransactionProcessedEvent, record)
        service = TransactionService(
            transactions=InMemoryTransactionRepository(transaction),
            scheduled_transactions=FailingScheduledTransactionRepository(scheduled),
            event_bus=bus,
            clock=clock,
        )

        result = await service.process_schedule_transaction("tx-1")

        assert result.error is ErrorCode.PERSISTENCE_ERROR
        assert published == []


class TestTransactionProcessor:
    async def test_payload_without_transaction_id(self, container, session) -> None:
        processor = container.processor_for(session)

        result = await processor.process({"id": "tx-1"})

        assert result.error is ErrorCode.INVALID_REQUEST

    async def test_delegates_to_service(self, clock: FrozenClock) -> None:
        transaction = Transaction(
            id="tx-9",
            account_id="acc-1",
            amount=Decimal("10.00"),
            transaction_type=TransactionType.DEPOSIT,
            status=TransactionStatus.PENDING,
        )
        bus = EventBus()
        service = TransactionService(
            transactions=InMemoryTransactionRepository(transaction),
            scheduled_transactions=FailingScheduledTransactionRepository(
                ScheduledTransaction.create("tx-9", NOW + timedelta(days=1))
            ),
            event_bus=bus,
            clock=clock,
        )

        result = await TransactionProcessor(service).process({"transactionId": "tx-9"})

        assert result.unwrap() is ProcessOutcome.NOT_DUE
