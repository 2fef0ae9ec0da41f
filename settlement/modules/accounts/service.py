"""Domain services for account management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import ensure_utc
from settlement.core.exceptions import PersistenceError
from settlement.core.results import ErrorCode, Result
from settlement.infrastructure.database.repositories.account_repository import SqlAccountRepository
from settlement.infrastructure.database.repositories.transaction_repository import SqlTransactionRepository
from settlement.modules.transactions.models import StatementQuery, Transaction
from settlement.modules.transactions.repository import TransactionRepository

from .models import UNSET, Account, AccountCreateInput, AccountUpdateInput, is_valid_balance
from .repository import AccountRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AccountStatement:
    account: Account
    transactions: Sequence[Transaction]


class AccountService:
    """Encapsulates account use cases other than settlement."""

    def __init__(self, repository: AccountRepository, transactions: TransactionRepository) -> None:
        self._repository = repository
        self._transactions = transactions

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        return cls(SqlAccountRepository(session), SqlTransactionRepository(session))

    async def get_account(self, account_id: str) -> Result[Account]:
        try:
            account = await self._repository.find_by_id(account_id)
        except PersistenceError as exc:
            logger.error("It was not possible to retrieve the account %s: %s", account_id, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        if account is None:
            logger.warning("Account with id %s not found", account_id)
            return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")
        return Result.success(account)

    async def get_by_number(self, account_number: int) -> Result[Account]:
        try:
            account = await self._repository.find_by_number(account_number)
        except PersistenceError as exc:
            logger.error("It was not possible to retrieve account number %s: %s", account_number, exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        if account is None:
            return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")
        return Result.success(account)

    async def create_account(self, payload: AccountCreateInput) -> Result[Account]:
        logger.info("Creating account %s for %s", payload.account_number, payload.name)
        if not is_valid_balance(payload.balance):
            logger.warning("Account balance is negative or has more than two decimal places")
            return Result.failure(ErrorCode.INVALID_REQUEST, "Account balance must be non-negative with at most two decimal places")

        try:
            existing = await self._repository.find_by_number(payload.account_number)
            if existing is not None:
                logger.warning("Account number %s already exists", payload.account_number)
                return Result.failure(ErrorCode.INVALID_REQUEST, "Account already exists")

            account = await self._repository.create(
                name=payload.name,
                account_number=payload.account_number,
                balance=payload.balance,
                account_type=payload.account_type,
            )
        except PersistenceError as exc:
            logger.error("Error when creating account: %s", exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        return Result.success(account)

    async def update_account(self, account_id: str, payload: AccountUpdateInput) -> Result[Account]:
        logger.info("Updating account %s", account_id)
        try:
            current = await self._repository.find_by_id(account_id)
            if current is None:
                logger.warning("Account with id %s not found", account_id)
                return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")

            account_number = (
                payload.account_number
                if payload.account_number is not UNSET
                else current.account_number
            )
            if account_number != current.account_number:
                holder = await self._repository.find_by_number(account_number)  # type: ignore[arg-type]
                if holder is not None and holder.id != account_id:
                    logger.warning("Account number %s already exists", account_number)
                    return Result.failure(ErrorCode.INVALID_REQUEST, "Account already exists")

            balance = payload.balance if payload.balance is not UNSET else current.balance
            if not is_valid_balance(balance):  # type: ignore[arg-type]
                return Result.failure(ErrorCode.INVALID_REQUEST, "Account balance must be non-negative with at most two decimal places")

            updated = Account(
                id=current.id,
                name=payload.name if payload.name is not UNSET else current.name,  # type: ignore[arg-type]
                account_number=account_number,  # type: ignore[arg-type]
                balance=balance,  # type: ignore[arg-type]
                account_type=(
                    payload.account_type if payload.account_type is not UNSET else current.account_type
                ),  # type: ignore[arg-type]
                created_at=current.created_at,
                updated_at=current.updated_at,
            )
            account = await self._repository.update(updated)
        except PersistenceError as exc:
            logger.error("Error when updating account: %s", exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        if account is None:
            logger.warning("Account with id %s vanished during update", account_id)
            return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")
        return Result.success(account)

    async def delete_account(self, account_id: str) -> Result[Account]:
        """Remove an account that no transaction refers to."""
        logger.info("Deleting account %s", account_id)
        try:
            account = await self._repository.find_by_id(account_id)
            if account is None:
                logger.warning("Account with id %s not found", account_id)
                return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")

            if await self._transactions.count_by_account(account_id):
                logger.warning("Account %s has transactions and was kept", account_id)
                return Result.failure(
                    ErrorCode.ACCOUNT_HAS_TRANSACTIONS, "Account has transactions and cannot be deleted"
                )

            if not await self._repository.delete(account_id):
                return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")
        except PersistenceError as exc:
            logger.error("Error when deleting account: %s", exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        return Result.success(account)

    async def get_statement(
        self,
        account_number: int,
        query: StatementQuery,
        account_id: str | None = None,
    ) -> Result[AccountStatement]:
        """The account with its transactions created between the query's dates.

        ``account_id``, when given, must belong to ``account_number``.
        """
        logger.info("Generating account statement for %s", account_number)
        if ensure_utc(query.start_date) > ensure_utc(query.end_date):
            return Result.failure(ErrorCode.INVALID_REQUEST, "start_date must not be after end_date")

        try:
            account = await self._repository.find_by_number(account_number)
            if account is None or (account_id is not None and account.id != account_id):
                logger.warning("Account number %s not found", account_number)
                return Result.failure(ErrorCode.ACCOUNT_NOT_FOUND, "Account does not exist")
            transactions = await self._transactions.find_statement(account.id, query)
        except PersistenceError as exc:
            logger.error("Error when generating account statement: %s", exc)
            return Result.failure(ErrorCode.PERSISTENCE_ERROR, str(exc))
        return Result.success(AccountStatement(account, list(transactions)))
