"""Delay queue on Redis through arq.

Run the consumer with ``arq settlement.infrastructure.queue.arq_queue.WorkerSettings``.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.worker import Retry
from redis.exceptions import RedisError

from settlement.core.config import get_settings
from settlement.core.exceptions import QueueError
from settlement.core.results import ErrorCode
from settlement.infrastructure.database.repositories.scheduled_transaction_repository import (
    SqlScheduledTransactionRepository,
)
from settlement.modules.transactions.service import ProcessOutcome

logger = logging.getLogger(__name__)

PROCESS_TRANSACTION_FUNCTION = "process_transaction"

# Jobs are enqueued before the creating request commits, so a job that runs
# early can miss its rows; those cases are retried like storage errors.
RETRYABLE_ERRORS = frozenset(
    {ErrorCode.PERSISTENCE_ERROR, ErrorCode.TRANSACTION_NOT_FOUND, ErrorCode.SCHEDULE_NOT_FOUND}
)


class ArqTransactionQueue:
    def __init__(self, redis_url: str, queue_name: str, pool: ArqRedis | None = None) -> None:
        self._redis_settings = RedisSettings.from_dsn(redis_url)
        self._queue_name = queue_name
        self._pool = pool

    async def add_transaction_to_queue(self, transaction_id: str, delay_ms: int) -> None:
        try:
            pool = await self._redis_pool()
            job = await pool.enqueue_job(
                PROCESS_TRANSACTION_FUNCTION,
                {"transactionId": transaction_id},
                _job_id=f"transaction:{transaction_id}",
                _queue_name=self._queue_name,
                _defer_by=timedelta(milliseconds=max(0, delay_ms)),
            )
        except (RedisError, OSError) as exc:
            logger.error("Failed to push transaction %s into %s: %s", transaction_id, self._queue_name, exc)
            raise QueueError(f"Could not enqueue transaction {transaction_id}: {exc}") from exc

        if job is None:
            logger.warning("Transaction %s already queued on %s", transaction_id, self._queue_name)
            return
        logger.info("Queued arq job %s for transaction %s in %d ms", job.job_id, transaction_id, delay_ms)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _redis_pool(self) -> ArqRedis:
        if self._pool is None:
            self._pool = await create_pool(self._redis_settings, default_queue_name=self._queue_name)
        return self._pool


async def process_transaction(ctx: dict[str, Any], payload: dict[str, Any]) -> str:
    """arq entry point for one delayed settlement."""
    container = ctx["container"]
    async with container.session_factory() as session:
        try:
            result = await container.processor_for(session).process(payload)
        except Exception:
            await session.rollback()
            raise
        if result.is_failure and result.error in RETRYABLE_ERRORS:
            await session.rollback()
            raise Retry(defer=get_settings().queue.retry_backoff_seconds * ctx.get("job_try", 1))
        if result.is_success and result.unwrap() is ProcessOutcome.NOT_DUE:
            await session.rollback()
            raise Retry(defer=await _time_until_due(session, container, str(payload["transactionId"])))
        await session.commit()

    if result.is_failure:
        return f"failed: {result.message}"
    return result.unwrap().value


async def _time_until_due(session, container, transaction_id: str) -> timedelta:
    scheduled = await SqlScheduledTransactionRepository(session).find_by_transaction_id(transaction_id)
    if scheduled is None:
        return timedelta(seconds=get_settings().queue.retry_backoff_seconds)
    return max(timedelta(0), scheduled.scheduled_at - container.clock.now())


async def startup(ctx: dict[str, Any]) -> None:
    from settlement.core.container import get_container
    from settlement.core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.format)
    ctx["container"] = get_container()


async def shutdown(ctx: dict[str, Any]) -> None:
    container = ctx.get("container")
    if container is not None:
        await container.aclose()


class WorkerSettings:
    functions = [process_transaction]
    on_startup = startup
    on_shutdown = shutdown
    queue_name = get_settings().queue.queue_name
    redis_settings = RedisSettings.from_dsn(get_settings().queue.redis_url)
    max_tries = get_settings().queue.max_attempts
