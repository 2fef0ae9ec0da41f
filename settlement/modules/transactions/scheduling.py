"""Delayed settlement: the queue contract and the scheduler façade."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Protocol

from settlement.core.clock import Clock, SystemClock, ensure_utc

logger = logging.getLogger(__name__)


class TransactionQueue(Protocol):
    async def add_transaction_to_queue(self, transaction_id: str, delay_ms: int) -> None:
        """Durably enqueue ``{"transactionId": transaction_id}`` to run after ``delay_ms``.

        Raises ``QueueError`` (or a persistence error) when the job cannot be stored.
        """
        ...


def delay_until(scheduled_at: datetime, now: datetime) -> int:
    """Milliseconds from ``now`` to ``scheduled_at``, rounded up and never negative.

    A job delayed by this amount never becomes available before ``scheduled_at``.
    """
    micros = (ensure_utc(scheduled_at) - ensure_utc(now)) // timedelta(microseconds=1)
    return max(0, -(-micros // 1000))


class TransactionScheduler:
    def __init__(self, queue: TransactionQueue, clock: Clock | None = None) -> None:
        self._queue = queue
        self._clock = clock or SystemClock()

    async def schedule_transaction(self, transaction_id: str, scheduled_at: datetime) -> None:
        delay_ms = delay_until(scheduled_at, self._clock.now())
        logger.info("Scheduling transaction %s in %d ms", transaction_id, delay_ms)
        await self._queue.add_transaction_to_queue(transaction_id, delay_ms)
