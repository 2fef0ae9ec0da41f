"""
Seed two demo accounts for local testing.
"""
import asyncio
from decimal import Decimal

from settlement.infrastructure.database.session import dispose_engine, get_session, init_db
from settlement.modules.accounts.models import AccountCreateInput, AccountType
from settlement.modules.accounts.service import AccountService

DEMO_ACCOUNTS = [
    AccountCreateInput(
        name="Maria Silva",
        account_number=1001,
        balance=Decimal("1000.00"),
        account_type=AccountType.CONTA_CORRENTE,
    ),
    AccountCreateInput(
        name="Joao Souza",
        account_number=1002,
        balance=Decimal("250.00"),
        account_type=AccountType.CONTA_POUPANCA,
    ),
]


async def create_demo_accounts():
    """Create the demo accounts that do not exist yet."""
    await init_db()

    async for db in get_session():
        service = AccountService.with_session(db)

        for payload in DEMO_ACCOUNTS:
            existing = await service.get_by_number(payload.account_number)
            if existing.is_success:
                print(f"Account {payload.account_number} already exists: {existing.unwrap().id}")
                continue

            created = await service.create_account(payload)
            if created.is_failure:
                print(f"Account {payload.account_number} not created: {created.message}")
                continue
            print(f"Account {payload.account_number} created: {created.unwrap().id}")

    await dispose_engine()


if __name__ == "__main__":
    asyncio.run(create_demo_accounts())
