"""Transaction domain exports."""

from .currency import CurrencyConversionService, PriceLookup
from .events import TransactionProcessedEvent
from .listener import Notifier, TransactionListener
from .models import (
    CreateTransactionRequest,
    CurrencyType,
    ScheduledTransaction,
    ScheduledTransactionStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from .processor import TransactionProcessor
from .scheduling import TransactionQueue, TransactionScheduler
from .service import ProcessOutcome, TransactionQueryService, TransactionService
from .usecase import CreateTransaction

__all__ = [
    "CreateTransaction",
    "CreateTransactionRequest",
    "CurrencyConversionService",
    "CurrencyType",
    "Notifier",
    "PriceLookup",
    "ProcessOutcome",
    "ScheduledTransaction",
    "ScheduledTransactionStatus",
    "Transaction",
    "TransactionListener",
    "TransactionProcessedEvent",
    "TransactionProcessor",
    "TransactionQueryService",
    "TransactionQueue",
    "TransactionScheduler",
    "TransactionService",
    "TransactionStatus",
    "TransactionType",
]
