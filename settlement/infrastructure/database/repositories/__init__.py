"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .job_repository import SqlJobRepository
from .scheduled_transaction_repository import SqlScheduledTransactionRepository
from .transaction_repository import SqlTransactionRepository

__all__ = [
    "SqlAccountRepository",
    "SqlJobRepository",
    "SqlScheduledTransactionRepository",
    "SqlTransactionRepository",
]
