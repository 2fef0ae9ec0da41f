"""Reusable FastAPI dependencies."""

from .account import get_account_repository, get_account_service
from .database import get_app_container, get_db_session

__all__ = [
    "get_account_repository",
    "get_account_service",
    "get_app_container",
    "get_db_session",
]
