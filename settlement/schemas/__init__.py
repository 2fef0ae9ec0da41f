"""Pydantic schemas used by the HTTP interface."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from settlement.modules.accounts.models import AccountType
from settlement.modules.transactions.models import CurrencyType, TransactionStatus, TransactionType


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    account_number: int
    balance: Decimal = Decimal("0.00")
    account_type: AccountType


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    account_number: Optional[int] = None
    balance: Optional[Decimal] = None
    account_type: Optional[AccountType] = None


class AccountResponse(BaseModel):
    id: str
    name: str
    account_number: int
    balance: Decimal
    account_type: AccountType
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionCreate(BaseModel):
    account_id: str
    amount: Decimal
    transaction_type: TransactionType
    currency: CurrencyType = CurrencyType.REAL
    destination_account_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=255)
    scheduled_at: Optional[datetime] = Field(
        None, description="Settle at this instant instead of immediately"
    )


class TransactionResponse(BaseModel):
    id: str
    account_id: str
    destination_account_id: Optional[str] = None
    amount: Decimal
    transaction_type: TransactionType
    status: TransactionStatus
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    total: int
    transactions: list[TransactionResponse]


class AccountStatementResponse(AccountResponse):
    transactions: list[TransactionResponse] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    error: str = Field(..., examples=["account_not_found"])
    message: str = Field(..., examples=["Account does not exist"])


class ErrorResponse(BaseModel):
    """Body of every failed request that reached a handler."""

    detail: ErrorDetail
