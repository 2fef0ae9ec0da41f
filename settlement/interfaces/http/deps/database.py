"""Database session dependency."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.container import ApplicationContainer


def get_app_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request; routers commit explicitly before answering."""
    async with get_app_container(request).session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
