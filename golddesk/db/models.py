from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from golddesk.utils.time import utc_now_naive

from .base import Base


class DepositLimit(Base):
    __tablename__ = "deposit_limits"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64))
    daily_limit: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(191), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(191), nullable=True)
    deposit_limit_id: Mapped[Optional[int]] = mapped_column(ForeignKey("deposit_limits.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    deposit_limit: Mapped[Optional[DepositLimit]] = relationship(lazy="joined")

    @property
    def display_name(self) -> str:
        return self.name or self.email


class UserBalance(Base):
    __tablename__ = "user_balances"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, index=True)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Idempotency key reported by the slip provider; UNIQUE is the real duplicate guard
    trans_ref: Mapped[str] = mapped_column(String(191), unique=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    status: Mapped[str] = mapped_column(String(32), default="completed")
    status_name: Mapped[Optional[str]] = mapped_column(String(191), nullable=True)
    method: Mapped[str] = mapped_column(String(16), default="BANK")
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    merchant_id: Mapped[str] = mapped_column(String(64), default="")
    order_no: Mapped[Optional[str]] = mapped_column(String(191), nullable=True)
    ref_no: Mapped[Optional[str]] = mapped_column(String(191), nullable=True)
    product_detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor: Mapped[str] = mapped_column(String(32))  # user|system
    action: Mapped[str] = mapped_column(String(64))
    target_type: Mapped[str] = mapped_column(String(64))
    target_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    meta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)
