"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from settlement.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class AccountModel(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(120), nullable=False)
    account_number = Column(Integer, unique=True, nullable=False, index=True)
    balance_cents = Column(Integer, nullable=False, default=0)
    account_type = Column(String(30), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    destination_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True, index=True)
    amount_cents = Column(Integer, nullable=False)
    transaction_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    description = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ScheduledTransactionModel(Base):
    __tablename__ = "scheduled_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), unique=True, nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class QueuedJobModel(Base):
    __tablename__ = "queued_jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    queue_name = Column(String(50), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    payload = Column(Text, nullable=False)
    available_at = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, running, done, failed
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
