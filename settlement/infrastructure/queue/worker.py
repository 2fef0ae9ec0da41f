"""Background task that runs due jobs from the database delay queue."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement.core.clock import Clock, SystemClock
from settlement.core.exceptions import PersistenceError
from settlement.core.results import ErrorCode
from settlement.infrastructure.database.repositories.job_repository import SqlJobRepository
from settlement.infrastructure.database.repositories.scheduled_transaction_repository import (
    SqlScheduledTransactionRepository,
)
from settlement.modules.transactions.processor import TransactionProcessor
from settlement.modules.transactions.service import ProcessOutcome

from .models import PROCESS_TRANSACTION_JOB, QueuedJob

logger = logging.getLogger(__name__)

ProcessorFactory = Callable[[AsyncSession], TransactionProcessor]

# Failures worth another attempt; anything else will fail the same way again.
RETRYABLE_ERRORS = frozenset({ErrorCode.PERSISTENCE_ERROR})


class QueueWorker:
    """Polls ``queued_jobs`` and hands each due job to a ``TransactionProcessor``.

    Each job runs in its own session, and the job row is marked ``done`` in
    that same transaction, so a settlement and its acknowledgement commit
    together. A job that raises, or whose result is retryable, is rolled
    back and rescheduled ``retry_backoff_seconds * attempts`` later; after
    ``max_attempts`` it is marked ``failed``. A job that runs before its
    schedule is due goes back to ``pending`` until ``scheduled_at``.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        processor_factory: ProcessorFactory,
        *,
        queue_name: str,
        clock: Clock | None = None,
        poll_interval_seconds: float = 1.0,
        batch_size: int = 10,
        max_attempts: int = 5,
        retry_backoff_seconds: float = 30.0,
    ) -> None:
        self._session_factory = session_factory
        self._processor_factory = processor_factory
        self.queue_name = queue_name
        self._clock = clock or SystemClock()
        self.poll_interval = poll_interval_seconds
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.retry_backoff = timedelta(seconds=retry_backoff_seconds)
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        released = await self.release_running()
        if released:
            logger.warning("Released %d jobs left running on queue %s", released, self.queue_name)
        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name=f"queue-worker:{self.queue_name}")
        logger.info("Queue worker started for %s", self.queue_name)

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stopping.set()
        try:
            await asyncio.wait_for(task, timeout=max(self.poll_interval, 1.0) * 5)
        except asyncio.TimeoutError:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.debug("Queue worker for %s cancelled", self.queue_name)
        self._task = None
        logger.info("Queue worker stopped for %s", self.queue_name)

    async def release_running(self) -> int:
        async with self._session_factory() as session:
            released = await SqlJobRepository(session).release_running(self.queue_name)
            await session.commit()
        return released

    async def run_once(self) -> int:
        """Claim and execute one batch of due jobs; return how many were claimed."""
        async with self._session_factory() as session:
            jobs = await SqlJobRepository(session).claim_due(self.queue_name, self._clock.now(), self.batch_size)
            await session.commit()

        for job in jobs:
            await self._execute(job)
        return len(jobs)

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                claimed = await self.run_once()
            except PersistenceError as exc:
                logger.error("Polling queue %s failed: %s", self.queue_name, exc)
                claimed = 0
            if claimed:
                continue
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def _execute(self, job: QueuedJob) -> None:
        if job.name != PROCESS_TRANSACTION_JOB:
            logger.error("Unknown job %s (%s) on queue %s", job.id, job.name, self.queue_name)
            await self._finish(job, error=f"unknown job name {job.name}")
            return

        try:
            async with self._session_factory() as session:
                try:
                    result = await self._processor_factory(session).process(job.payload)
                    if result.is_failure and result.error in RETRYABLE_ERRORS:
                        raise PersistenceError(result.message or "persistence error")
                    jobs = SqlJobRepository(session)
                    if result.is_success and result.unwrap() is ProcessOutcome.NOT_DUE:
                        await self._defer(session, job)
                    elif result.is_success:
                        await jobs.mark_done(job.id)
                    else:
                        await jobs.mark_failed(job.id, result.message or str(result.error))
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Job %s on queue %s failed (attempt %d): %s", job.id, self.queue_name, job.attempts, exc)
            await self._retry_or_fail(job, str(exc))

    async def _defer(self, session: AsyncSession, job: QueuedJob) -> None:
        scheduled = await SqlScheduledTransactionRepository(session).find_by_transaction_id(job.transaction_id or "")
        if scheduled is None:
            raise PersistenceError(f"schedule of job {job.id} disappeared")
        await SqlJobRepository(session).defer(job.id, scheduled.scheduled_at)
        logger.info("Job %s ran early; deferred to %s", job.id, scheduled.scheduled_at.isoformat())

    async def _retry_or_fail(self, job: QueuedJob, error: str) -> None:
        if job.attempts >= self.max_attempts:
            logger.error("Job %s exhausted %d attempts; marking failed", job.id, job.attempts)
            await self._finish(job, error=error)
            return

        available_at = self._clock.now() + self.retry_backoff * job.attempts
        async with self._session_factory() as session:
            await SqlJobRepository(session).reschedule(job.id, available_at, error)
            await session.commit()
        logger.info("Job %s rescheduled for %s", job.id, available_at.isoformat())

    async def _finish(self, job: QueuedJob, *, error: str) -> None:
        async with self._session_factory() as session:
            await SqlJobRepository(session).mark_failed(job.id, error)
            await session.commit()
