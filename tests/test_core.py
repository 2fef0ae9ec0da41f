"""Tests for results, exceptions, clock and the event bus."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from settlement.core.clock import FrozenClock, SystemClock, ensure_utc
from settlement.core.events import EventBus
from settlement.core.exceptions import (
    InvalidTransactionError,
    PersistenceError,
    PriceLookupError,
    QueueError,
    SettlementError,
)
from settlement.core.results import ErrorCode, Result


class TestResult:
    def test_success_carries_value(self) -> None:
        result = Result.success(42)

        assert result.is_success
        assert not result.is_failure
        assert result.unwrap() == 42
        assert result.error is None

    def test_failure_defaults_message_to_code(self) -> None:
        result = Result.failure(ErrorCode.ACCOUNT_NOT_FOUND)

        assert result.is_failure
        assert result.error is ErrorCode.ACCOUNT_NOT_FOUND
        assert result.message == "account_not_found"

    def test_failure_keeps_custom_message(self) -> None:
        result = Result.failure(ErrorCode.INSUFFICIENT_BALANCE, "not enough")

        assert result.message == "not enough"

    def test_unwrap_on_failure_raises(self) -> None:
        with pytest.raises(ValueError, match="persistence_error"):
            Result.failure(ErrorCode.PERSISTENCE_ERROR).unwrap()

    def test_results_are_immutable(self) -> None:
        result = Result.success("x")
        with pytest.raises(AttributeError):
            result.value = "y"  # type: ignore[misc]


class TestExceptionHierarchy:
    def test_all_errors_share_base(self) -> None:
        for error in (PersistenceError, PriceLookupError, InvalidTransactionError, QueueError):
            assert issubclass(error, SettlementError)

    def test_invalid_transaction_is_value_error(self) -> None:
        assert isinstance(InvalidTransactionError("bad"), ValueError)


class TestClock:
    def test_system_clock_is_utc(self) -> None:
        assert SystemClock().now().tzinfo is timezone.utc

    def test_frozen_clock_moves_only_when_told(self) -> None:
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        clock = FrozenClock(start)

        assert clock.now() == start
        clock.advance(timedelta(hours=1))
        assert clock.now() == start + timedelta(hours=1)
        clock.set(start)
        assert clock.now() == start

    def test_ensure_utc_treats_naive_as_utc(self) -> None:
        naive = datetime(2026, 1, 1, 12, 0)

        assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_ensure_utc_converts_offsets(self) -> None:
        sao_paulo = timezone(timedelta(hours=-3))
        local = datetime(2026, 1, 1, 9, 0, tzinfo=sao_paulo)

        assert ensure_utc(local) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Ping:
    value: int


@dataclass(frozen=True)
class Pong:
    value: int


class TestEventBus:
    async def test_publish_delivers_in_subscription_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        async def first(event: Ping) -> None:
            seen.append(f"first:{event.value}")

        async def second(event: Ping) -> None:
            seen.append(f"second:{event.value}")

        bus.subscribe(Ping, first)
        bus.subscribe(Ping, second)

        delivered = await bus.publish(Ping(1))

        assert delivered == 2
        assert seen == ["first:1", "second:1"]

    async def test_publish_only_reaches_matching_type(self) -> None:
        bus = EventBus()
        seen: list[object] = []

        async def on_pong(event: Pong) -> None:
            seen.append(event)

        bus.subscribe(Pong, on_pong)

        assert await bus.publish(Ping(1)) == 0
        assert seen == []

    async def test_unsubscribe(self) -> None:
        bus = EventBus()
        seen: list[object] = []

        async def handler(event: Ping) -> None:
            seen.append(event)

        bus.subscribe(Ping, handler)
        bus.unsubscribe(Ping, handler)

        await bus.publish(Ping(1))
        assert seen == []
        assert bus.handlers_for(Ping) == []

    async def test_subscriber_errors_reach_publisher(self) -> None:
        bus = EventBus()

        async def broken(event: Ping) -> None:
            raise RuntimeError("boom")

        bus.subscribe(Ping, broken)

        with pytest.raises(RuntimeError, match="boom"):
            await bus.publish(Ping(1))

    async def test_buses_are_independent(self) -> None:
        one, two = EventBus(), EventBus()
        seen: list[object] = []

        async def handler(event: Ping) -> None:
            seen.append(event)

        one.subscribe(Ping, handler)

        assert await two.publish(Ping(1)) == 0
        assert seen == []
