"""SQLAlchemy implementation of the account repository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.clock import ensure_utc
from settlement.infrastructure.database.models import AccountModel
from settlement.modules.accounts.models import Account, AccountType
from settlement.modules.accounts.repository import AccountRepository

from .base import from_cents, to_cents, translate_errors


class SqlAccountRepository(AccountRepository):
    """Account repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_errors
    async def find_by_id(self, account_id: str) -> Account | None:
        stmt = select(AccountModel).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    @translate_errors
    async def find_by_number(self, account_number: int) -> Account | None:
        stmt = select(AccountModel).where(AccountModel.account_number == account_number)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    @translate_errors
    async def create(
        self,
        *,
        name: str,
        account_number: int,
        balance: Decimal,
        account_type: AccountType,
    ) -> Account:
        model = AccountModel(
            name=name,
            account_number=account_number,
            balance_cents=to_cents(balance),
            account_type=account_type.value,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    @translate_errors
    async def update(self, account: Account) -> Account | None:
        model = await self._session.get(AccountModel, account.id)
        if model is None:
            return None

        model.name = account.name
        model.account_number = account.account_number
        model.balance_cents = to_cents(account.balance)
        model.account_type = account.account_type.value

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    @translate_errors
    async def delete(self, account_id: str) -> bool:
        result = await self._session.execute(delete(AccountModel).where(AccountModel.id == account_id))
        return (result.rowcount or 0) > 0

    @translate_errors
    async def apply_balance_delta(self, account_id: str, delta: Decimal) -> Account | None:
        delta_cents = to_cents(delta)
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .where(AccountModel.balance_cents + delta_cents >= 0)
            .values(balance_cents=AccountModel.balance_cents + delta_cents)
            .execution_options(synchronize_session=False)
            .returning(AccountModel.id)
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None
        model = await self._session.get(AccountModel, account_id, populate_existing=True)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: AccountModel | None) -> Account | None:
        if model is None:
            return None
        return Account(
            id=str(model.id),
            name=model.name,
            account_number=model.account_number,
            balance=from_cents(model.balance_cents),
            account_type=AccountType(model.account_type),
            created_at=ensure_utc(model.created_at) if model.created_at else None,
            updated_at=ensure_utc(model.updated_at) if model.updated_at else None,
        )
