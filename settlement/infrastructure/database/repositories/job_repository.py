"""SQLAlchemy-backed storage for the durable delay queue."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import ensure_utc
from settlement.infrastructure.database.models import QueuedJobModel
from settlement.infrastructure.queue.models import QueuedJob

from .base import translate_errors


class SqlJobRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @translate_errors
    async def enqueue(
        self,
        *,
        queue_name: str,
        name: str,
        payload: dict[str, Any],
        available_at: datetime,
    ) -> QueuedJob:
        model = QueuedJobModel(
            queue_name=queue_name,
            name=name,
            payload=json.dumps(payload),
            available_at=available_at,
            status="pending",
            attempts=0,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    @translate_errors
    async def list_jobs(self, queue_name: str, status: str | None = None) -> Sequence[QueuedJob]:
        stmt = select(QueuedJobModel).where(QueuedJobModel.queue_name == queue_name)
        if status is not None:
            stmt = stmt.where(QueuedJobModel.status == status)
        stmt = stmt.order_by(QueuedJobModel.available_at)
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @translate_errors
    async def claim_due(self, queue_name: str, now: datetime, limit: int) -> list[QueuedJob]:
        """Move up to ``limit`` due jobs from pending to running.

        The status predicate on the UPDATE makes the claim exclusive: a job
        that another worker claimed first is skipped.
        """
        stmt = (
            select(QueuedJobModel.id)
            .where(QueuedJobModel.queue_name == queue_name)
            .where(QueuedJobModel.status == "pending")
            .where(QueuedJobModel.available_at <= now)
            .order_by(QueuedJobModel.available_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        candidate_ids = list(result.scalars().all())

        claimed: list[QueuedJob] = []
        for job_id in candidate_ids:
            claim = (
                update(QueuedJobModel)
                .where(QueuedJobModel.id == job_id)
                .where(QueuedJobModel.status == "pending")
                .values(status="running", attempts=QueuedJobModel.attempts + 1)
                .execution_options(synchronize_session=False)
            )
            outcome = await self.session.execute(claim)
            if outcome.rowcount == 1:
                model = await self.session.get(QueuedJobModel, job_id, populate_existing=True)
                claimed.append(self._to_domain(model))
        return claimed

    @translate_errors
    async def mark_done(self, job_id: str) -> None:
        await self._set(job_id, status="done", last_error=None)

    @translate_errors
    async def mark_failed(self, job_id: str, error: str) -> None:
        await self._set(job_id, status="failed", last_error=error)

    @translate_errors
    async def reschedule(self, job_id: str, available_at: datetime, error: str) -> None:
        await self._set(job_id, status="pending", available_at=available_at, last_error=error)

    @translate_errors
    async def defer(self, job_id: str, available_at: datetime) -> None:
        """Put a job that woke up early back to sleep; the early run is not an attempt."""
        await self._set(
            job_id,
            status="pending",
            available_at=available_at,
            attempts=QueuedJobModel.attempts - 1,
        )

    @translate_errors
    async def release_running(self, queue_name: str) -> int:
        """Return jobs left ``running`` by a crashed worker to the pending state."""
        stmt = (
            update(QueuedJobModel)
            .where(QueuedJobModel.queue_name == queue_name)
            .where(QueuedJobModel.status == "running")
            .values(status="pending")
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def _set(self, job_id: str, **values: Any) -> None:
        stmt = (
            update(QueuedJobModel)
            .where(QueuedJobModel.id == job_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    @staticmethod
    def _to_domain(model: QueuedJobModel) -> QueuedJob:
        return QueuedJob(
            id=model.id,
            queue_name=model.queue_name,
            name=model.name,
            payload=json.loads(model.payload) if model.payload else {},
            available_at=ensure_utc(model.available_at),
            status=model.status,
            attempts=model.attempts or 0,
            last_error=model.last_error,
            created_at=ensure_utc(model.created_at) if model.created_at else None,
        )
