"""Account domain exports."""

from .models import Account, AccountCreateInput, AccountType, AccountUpdateInput
from .repository import AccountRepository

__all__ = [
    "Account",
    "AccountCreateInput",
    "AccountRepository",
    "AccountType",
    "AccountUpdateInput",
]
