"""
Relational schema.

Every table carries created/updated timestamps and a nullable deleted_at;
rows are soft-deleted and never physically removed by the services.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


MONEY = Numeric(12, 2)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )


class UserRow(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    wallet_address: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)


class PartnershipRow(TimestampMixin, Base):
    __tablename__ = "partnerships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_a_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    user_b_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    # active, inactive, split
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)


class GratitudeEntryRow(TimestampMixin, Base):
    __tablename__ = "gratitude_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    partnership_id: Mapped[int] = mapped_column(ForeignKey("partnerships.id"), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)


class GoalRow(TimestampMixin, Base):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partnership_id: Mapped[int] = mapped_column(ForeignKey("partnerships.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)
    # active, completed, cancelled
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)


class TransactionRow(TimestampMixin, Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    partnership_id: Mapped[int] = mapped_column(ForeignKey("partnerships.id"), nullable=False, index=True)
    # contribution, gratitude, split
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    tx_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    # pending, confirmed, failed
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)


class WalletBalanceRow(TimestampMixin, Base):
    __tablename__ = "wallet_balances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Not a foreign key: a balance may be read for a partnership id that has no row yet.
    partnership_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


Index("ix_transactions_partnership_created", TransactionRow.partnership_id, TransactionRow.created_at)
Index("ix_goals_partnership_created", GoalRow.partnership_id, GoalRow.created_at)
