"""Tests for transaction creation and immediate settlement."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import FrozenClock
from settlement.core.container import ApplicationContainer
from settlement.core.events import EventBus
from settlement.core.exceptions import PersistenceError, QueueError
from settlement.core.results import ErrorCode
from settlement.infrastructure.database.repositories import (
    SqlAccountRepository,
    SqlJobRepository,
    SqlScheduledTransactionRepository,
    SqlTransactionRepository,
)
from settlement.modules.transactions.currency import CurrencyConversionService
from settlement.modules.transactions.models import (
    CreateTransactionRequest,
    CurrencyType,
    ScheduledTransactionStatus,
    TransactionStatus,
    TransactionType,
)
from settlement.modules.transactions.scheduling import TransactionScheduler, delay_until
from settlement.modules.transactions.usecase import CreateTransaction

from .conftest import NOW
from .fakes import FakePriceLookup, InMemoryAccountRepository, InMemoryTransactionRepository, RecordingQueue


def build_use_case(session: AsyncSession, container: ApplicationContainer, queue: RecordingQueue) -> CreateTransaction:
    assert container.price_lookup is not None
    return CreateTransaction(
        transactions=SqlTransactionRepository(session),
        scheduled_transactions=SqlScheduledTransactionRepository(session),
        accounts=SqlAccountRepository(session),
        conversion=CurrencyConversionService(container.price_lookup),
        scheduler=TransactionScheduler(queue, container.clock),
        event_bus=EventBus(),
    )


class BrokenAccountRepository(InMemoryAccountRepository):
    async def find_by_id(self, account_id: str):
        raise PersistenceError("connection lost")


class TestImmediateSettlement:
    async def test_deposit(self, make_account, submit, balance_of, load_transaction) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal("50.00"), transaction_type=TransactionType.DEPOSIT)

        assert result.is_success
        created = result.unwrap()
        assert created.id is not None
        assert await balance_of(account.id) == Decimal("150.00")
        stored = await load_transaction(created.id)
        assert stored.status is TransactionStatus.COMPLETED

    async def test_withdraw(self, make_account, submit, balance_of) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal("40.00"), transaction_type=TransactionType.WITHDRAW)

        assert result.is_success
        assert await balance_of(account.id) == Decimal("60.00")

    async def test_withdraw_of_whole_balance(self, make_account, submit, balance_of) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal("100.00"), transaction_type=TransactionType.WITHDRAW)

        assert result.is_success
        assert await balance_of(account.id) == Decimal("0.00")

    async def test_insufficient_balance_persists_nothing(self, make_account, submit, balance_of, container, session) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal("150.00"), transaction_type=TransactionType.WITHDRAW)

        assert result.is_failure
        assert result.error is ErrorCode.INSUFFICIENT_BALANCE
        assert result.message == "Insufficient balance to make the transaction"
        assert await balance_of(account.id) == Decimal("100.00")
        listed = await container.transaction_components(session).queries.list_by_account(account.id)
        assert list(listed.unwrap()) == []

    async def test_transfer_conserves_money(self, make_account, submit, balance_of, load_transaction) -> None:
        source = await make_account("1000.00")
        destination = await make_account("2000.00")

        result = await submit(
            account_id=source.id,
            amount=Decimal("100.00"),
            transaction_type=TransactionType.TRANSFER,
            destination_account_id=destination.id,
        )

        assert result.is_success
        assert await balance_of(source.id) == Decimal("900.00")
        assert await balance_of(destination.id) == Decimal("2100.00")
        assert (await load_transaction(result.unwrap().id)).status is TransactionStatus.COMPLETED

    async def test_foreign_currency_is_converted(self, make_account, submit, balance_of, price_lookup) -> None:
        account = await make_account("0.00")

        result = await submit(
            account_id=account.id,
            amount=Decimal("100"),
            transaction_type=TransactionType.DEPOSIT,
            currency=CurrencyType.AMERICAN_DOLLAR,
        )

        assert result.unwrap().amount == Decimal("560.00")
        assert await balance_of(account.id) == Decimal("560.00")
        assert price_lookup.calls == [("USD", "BRL")]

    async def test_foreign_amount_may_have_more_decimals(self, make_account, submit, balance_of) -> None:
        account = await make_account("0.00")

        # 10.005 * 5.60 = 56.028
        result = await submit(
            account_id=account.id,
            amount=Decimal("10.005"),
            transaction_type=TransactionType.DEPOSIT,
            currency=CurrencyType.AMERICAN_DOLLAR,
        )

        assert result.unwrap().amount == Decimal("56.03")
        assert await balance_of(account.id) == Decimal("56.03")

    async def test_settlement_currency_skips_lookup(self, make_account, submit, price_lookup) -> None:
        account = await make_account("0.00")

        await submit(account_id=account.id, amount=Decimal("10.00"), transaction_type=TransactionType.DEPOSIT)

        assert price_lookup.calls == []

    async def test_conversion_failure(self, make_account, submit, balance_of, price_lookup) -> None:
        account = await make_account("10.00")
        price_lookup.prices.clear()

        result = await submit(
            account_id=account.id,
            amount=Decimal("5"),
            transaction_type=TransactionType.DEPOSIT,
            currency=CurrencyType.EURO,
        )

        assert result.error is ErrorCode.CONVERSION_FAILED
        assert result.message == "Error converting currency"
        assert await balance_of(account.id) == Decimal("10.00")

    async def test_notifies_each_touched_account(self, make_account, submit, notifier) -> None:
        source = await make_account("300.00")
        destination = await make_account("0.00")

        result = await submit(
            account_id=source.id,
            amount=Decimal("120.50"),
            transaction_type=TransactionType.TRANSFER,
            destination_account_id=destination.id,
        )

        transaction_id = result.unwrap().id
        assert notifier.payloads == [
            {
                "accountId": source.id,
                "transactionId": transaction_id,
                "kind": "TRANSFER",
                "amount": "120.50",
                "newBalance": "179.50",
            },
            {
                "accountId": destination.id,
                "transactionId": transaction_id,
                "kind": "TRANSFER",
                "amount": "120.50",
                "newBalance": "120.50",
            },
        ]


class TestRequestValidation:
    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    async def test_amount_must_be_positive(self, make_account, submit, amount: str) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal(amount), transaction_type=TransactionType.DEPOSIT)

        assert result.error is ErrorCode.INVALID_REQUEST
        assert result.message == "Amount must be greater than zero"

    async def test_settlement_currency_amount_limited_to_cents(self, make_account, submit) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal("1.005"), transaction_type=TransactionType.DEPOSIT)

        assert result.error is ErrorCode.INVALID_REQUEST

    async def test_transfer_needs_destination(self, make_account, submit) -> None:
        account = await make_account("100.00")

        result = await submit(account_id=account.id, amount=Decimal("1.00"), transaction_type=TransactionType.TRANSFER)

        assert result.error is ErrorCode.INVALID_REQUEST
        assert result.message == "Destination account is required for transfers"

    async def test_transfer_to_self(self, make_account, submit, balance_of) -> None:
        account = await make_account("100.00")

        result = await submit(
            account_id=account.id,
            amount=Decimal("1.00"),
            transaction_type=TransactionType.TRANSFER,
            destination_account_id=account.id,
        )

        assert result.error is ErrorCode.INVALID_REQUEST
        assert await balance_of(account.id) == Decimal("100.00")

    @pytest.mark.parametrize("kind", [TransactionType.DEPOSIT, TransactionType.WITHDRAW])
    async def test_destination_only_for_transfers(self, make_account, submit, kind: TransactionType) -> None:
        source = await make_account("100.00")
        other = await make_account("100.00")

        result = await submit(
            account_id=source.id,
            amount=Decimal("1.00"),
            transaction_type=kind,
            destination_account_id=other.id,
        )

        assert result.error is ErrorCode.INVALID_REQUEST

    async def test_unknown_origin(self, submit) -> None:
        result = await submit(account_id="missing", amount=Decimal("1.00"), transaction_type=TransactionType.DEPOSIT)

        assert result.error is ErrorCode.ACCOUNT_NOT_FOUND
        assert result.message == "Origin account does not exist"

    async def test_unknown_destination(self, make_account, submit, balance_of, container, session) -> None:
        source = await make_account("100.00")

        result = await submit(
            account_id=source.id,
            amount=Decimal("10.00"),
            transaction_type=TransactionType.TRANSFER,
            destination_account_id="missing",
        )

        assert result.error is ErrorCode.ACCOUNT_NOT_FOUND
        assert result.message == "Destination account does not exist"
        assert await balance_of(source.id) == Decimal("100.00")
        listed = await container.transaction_components(session).queries.list_by_account(source.id)
        assert list(listed.unwrap()) == []

    async def test_account_lookup_failure(self, session: AsyncSession, clock: FrozenClock) -> None:
        use_case = CreateTransaction(
            transactions=InMemoryTransactionRepository(),
            scheduled_transactions=SqlScheduledTransactionRepository(session),
            accounts=BrokenAccountRepository(),
            conversion=CurrencyConversionService(FakePriceLookup()),
            scheduler=TransactionScheduler(RecordingQueue(), clock),
            event_bus=EventBus(),
        )

        result = await use_case.handle(
            CreateTransactionRequest(account_id="acc-1", amount=Decimal("1.00"), transaction_type=TransactionType.DEPOSIT)
        )

        assert result.error is ErrorCode.PERSISTENCE_ERROR


class TestScheduledCreation:
    async def test_scheduled_transaction_waits_for_its_job(
        self, make_account, submit, balance_of, load_transaction, load_schedule, session, notifier
    ) -> None:
        account = await make_account("100.00")
        at = NOW + timedelta(hours=1)

        result = await submit(
            account_id=account.id,
            amount=Decimal("50.00"),
            transaction_type=TransactionType.DEPOSIT,
            scheduled_at=at,
        )

        created = result.unwrap()
        assert created.status is TransactionStatus.PENDING
        assert (await load_transaction(created.id)).status is TransactionStatus.PENDING
        schedule = await load_schedule(created.id)
        assert schedule.status is ScheduledTransactionStatus.PENDING
        assert schedule.scheduled_at == at
        assert await balance_of(account.id) == Decimal("100.00")
        assert notifier.payloads == []

        jobs = await SqlJobRepository(session).list_jobs("transactionQueue")
        assert len(jobs) == 1
        assert jobs[0].transaction_id == created.id
        assert jobs[0].available_at == at
        assert jobs[0].status == "pending"

    async def test_delay_is_measured_from_now(self, make_account, session_factory, container) -> None:
        account = await make_account("100.00")
        queue = RecordingQueue()

        async with session_factory() as session:
            result = await build_use_case(session, container, queue).handle(
                CreateTransactionRequest(
                    account_id=account.id,
                    amount=Decimal("10.00"),
                    transaction_type=TransactionType.DEPOSIT,
                    scheduled_at=NOW + timedelta(seconds=90),
                )
            )

        assert queue.jobs == [(result.unwrap().id, 90_000)]

    async def test_past_schedule_runs_without_delay(self, make_account, session_factory, container) -> None:
        account = await make_account("100.00")
        queue = RecordingQueue()

        async with session_factory() as session:
            result = await build_use_case(session, container, queue).handle(
                CreateTransactionRequest(
                    account_id=account.id,
                    amount=Decimal("10.00"),
                    transaction_type=TransactionType.DEPOSIT,
                    scheduled_at=NOW - timedelta(days=1),
                )
            )

        assert queue.jobs == [(result.unwrap().id, 0)]

    async def test_scheduled_withdraw_checks_current_balance(self, make_account, submit) -> None:
        account = await make_account("100.00")

        result = await submit(
            account_id=account.id,
            amount=Decimal("100.01"),
            transaction_type=TransactionType.WITHDRAW,
            scheduled_at=NOW + timedelta(hours=1),
        )

        assert result.error is ErrorCode.INSUFFICIENT_BALANCE

    async def test_queue_failure_leaves_transaction_pending(
        self, make_account, session_factory, container, load_transaction, balance_of
    ) -> None:
        account = await make_account("100.00")
        queue = RecordingQueue(error=QueueError("redis unavailable"))

        async with session_factory() as session:
            use_case = build_use_case(session, container, queue)
            result = await use_case.handle(
                CreateTransactionRequest(
                    account_id=account.id,
                    amount=Decimal("10.00"),
                    transaction_type=TransactionType.WITHDRAW,
                    scheduled_at=NOW + timedelta(minutes=5),
                )
            )
            await session.commit()
            listed = await SqlTransactionRepository(session).find_by_account_id(account.id)

        assert result.error is ErrorCode.SCHEDULING_FAILED
        assert len(listed) == 1
        assert listed[0].status is TransactionStatus.PENDING
        assert (await load_transaction(listed[0].id)).status is TransactionStatus.PENDING
        assert await balance_of(account.id) == Decimal("100.00")


class TestDelayUntil:
    def test_future(self) -> None:
        assert delay_until(NOW + timedelta(milliseconds=1500), NOW) == 1500

    def test_partial_millisecond_rounds_up(self) -> None:
        assert delay_until(NOW + timedelta(seconds=1, microseconds=500), NOW) == 1001
        assert delay_until(NOW + timedelta(microseconds=1), NOW) == 1

    def test_past_is_clamped(self) -> None:
        assert delay_until(NOW - timedelta(seconds=1), NOW) == 0

    def test_naive_datetimes_are_utc(self) -> None:
        naive = (NOW + timedelta(seconds=2)).replace(tzinfo=None)

        assert delay_until(naive, NOW) == 2000
