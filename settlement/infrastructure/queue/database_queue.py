"""Delay queue persisted in the application database."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import Clock, SystemClock
from settlement.infrastructure.database.repositories.job_repository import SqlJobRepository

from .models import PROCESS_TRANSACTION_JOB

logger = logging.getLogger(__name__)


class DatabaseTransactionQueue:
    """Writes one ``queued_jobs`` row per delayed settlement.

    The row is written in the caller's session, so it commits together with
    the transaction it belongs to and survives process restarts.
    """

    def __init__(self, jobs: SqlJobRepository, queue_name: str, clock: Clock | None = None) -> None:
        self._jobs = jobs
        self._queue_name = queue_name
        self._clock = clock or SystemClock()

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        queue_name: str,
        clock: Clock | None = None,
    ) -> "DatabaseTransactionQueue":
        return cls(SqlJobRepository(session), queue_name, clock)

    async def add_transaction_to_queue(self, transaction_id: str, delay_ms: int) -> None:
        available_at = self._clock.now() + timedelta(milliseconds=max(0, delay_ms))
        job = await self._jobs.enqueue(
            queue_name=self._queue_name,
            name=PROCESS_TRANSACTION_JOB,
            payload={"transactionId": transaction_id},
            available_at=available_at,
        )
        logger.info("Queued job %s for transaction %s at %s", job.id, transaction_id, available_at.isoformat())
