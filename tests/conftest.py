"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from settlement.core.clock import FrozenClock
from settlement.core.config import Settings
from settlement.core.container import ApplicationContainer
from settlement.core.results import Result
from settlement.infrastructure.database.repositories import (
    SqlScheduledTransactionRepository,
    SqlTransactionRepository,
)
from settlement.infrastructure.database.session import build_session_factory, init_db
from settlement.modules.accounts.models import Account, AccountCreateInput, AccountType
from settlement.modules.accounts.service import AccountService
from settlement.modules.transactions.models import CreateTransactionRequest, ScheduledTransaction, Transaction
from settlement.modules.transactions.service import ProcessOutcome

from .fakes import FakePriceLookup, RecordingNotifier

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'settlement.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def price_lookup() -> FakePriceLookup:
    return FakePriceLookup({("USD", "BRL"): Decimal("5.60"), ("EUR", "BRL"): Decimal("6.1234")})


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, queue={"retry_backoff_seconds": 30, "max_attempts": 3, "batch_size": 10})


@pytest.fixture
def container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    price_lookup: FakePriceLookup,
    notifier: RecordingNotifier,
    clock: FrozenClock,
) -> ApplicationContainer:
    return ApplicationContainer(
        settings=settings,
        session_factory=session_factory,
        price_lookup=price_lookup,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def make_account(session_factory: async_sessionmaker[AsyncSession]):
    """Create and commit an account; returns the stored account."""
    counter = {"next": 1000}

    async def _make(balance: str | Decimal, name: str = "Test Holder", number: int | None = None) -> Account:
        counter["next"] += 1
        async with session_factory() as session:
            result = await AccountService.with_session(session).create_account(
                AccountCreateInput(
                    name=name,
                    account_number=number if number is not None else counter["next"],
                    balance=Decimal(balance),
                    account_type=AccountType.CONTA_CORRENTE,
                )
            )
            await session.commit()
        return result.unwrap()

    return _make


@pytest.fixture
def balance_of(session_factory: async_sessionmaker[AsyncSession]):
    """Read an account balance through a fresh session."""

    async def _balance(account_id: str) -> Decimal:
        async with session_factory() as session:
            result = await AccountService.with_session(session).get_account(account_id)
        return result.unwrap().balance

    return _balance


@pytest.fixture
def submit(container: ApplicationContainer, session_factory: async_sessionmaker[AsyncSession]):
    """Run CreateTransaction in its own committed unit of work."""

    async def _submit(**fields) -> Result[Transaction]:
        async with session_factory() as session:
            components = container.transaction_components(session)
            result = await components.create_transaction.handle(CreateTransactionRequest(**fields))
            await session.commit()
        return result

    return _submit


@pytest.fixture
def settle(container: ApplicationContainer, session_factory: async_sessionmaker[AsyncSession]):
    """Deliver a queue job for ``transaction_id`` the way a worker would."""

    async def _settle(transaction_id: str) -> Result[ProcessOutcome]:
        async with session_factory() as session:
            result = await container.processor_for(session).process({"transactionId": transaction_id})
            await session.commit()
        return result

    return _settle


@pytest.fixture
def load_transaction(session_factory: async_sessionmaker[AsyncSession]):
    async def _load(transaction_id: str) -> Transaction | None:
        async with session_factory() as session:
            return await SqlTransactionRepository(session).find_by_id(transaction_id)

    return _load


@pytest.fixture
def load_schedule(session_factory: async_sessionmaker[AsyncSession]):
    async def _load(transaction_id: str) -> ScheduledTransaction | None:
        async with session_factory() as session:
            return await SqlScheduledTransactionRepository(session).find_by_transaction_id(transaction_id)

    return _load
