"""Exception hierarchy for the settlement server."""


class SettlementError(Exception):
    """Base class for settlement server errors."""


class PersistenceError(SettlementError):
    """Raised when a repository cannot read or write its store."""


class PriceLookupError(SettlementError):
    """Raised when a currency price cannot be obtained."""


class InvalidTransactionError(SettlementError, ValueError):
    """Raised when a transaction would violate its construction invariants."""


class QueueError(SettlementError):
    """Raised when a delayed job cannot be enqueued."""
