"""Entry point invoked by the delay queue for each due job."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from settlement.core.results import ErrorCode, Result

from .service import ProcessOutcome, TransactionService

logger = logging.getLogger(__name__)


class TransactionProcessor:
    def __init__(self, transaction_service: TransactionService) -> None:
        self._transaction_service = transaction_service

    async def process(self, payload: Mapping[str, Any]) -> Result[ProcessOutcome]:
        transaction_id = payload.get("transactionId")
        if not transaction_id:
            logger.error("Queue job without transactionId: %s", dict(payload))
            return Result.failure(ErrorCode.INVALID_REQUEST, "Job payload has no transactionId")

        logger.info("Processing transaction %s", transaction_id)
        result = await self._transaction_service.process_schedule_transaction(str(transaction_id))
        if result.is_success:
            logger.info("Transaction %s: %s", transaction_id, result.unwrap().value)
        else:
            logger.warning("Transaction %s not processed: %s", transaction_id, result.message)
        return result
