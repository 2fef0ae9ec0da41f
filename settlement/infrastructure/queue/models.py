"""Delayed job records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

PROCESS_TRANSACTION_JOB = "processTransaction"


@dataclass(slots=True)
class QueuedJob:
    id: str
    queue_name: str
    name: str
    available_at: datetime
    status: str
    attempts: int = 0
    payload: dict[str, Any] = field(default_factory=dict)
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def transaction_id(self) -> str | None:
        value = self.payload.get("transactionId")
        return str(value) if value else None
