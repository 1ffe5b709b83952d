"""Investor, Transaction and WithdrawalRequest ORM models — approved accounts and their ledger."""

import uuid
from datetime import datetime
from sqlalchemy import String, Numeric, DateTime, ForeignKey, Text, JSON, Enum as PgEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from db.database import Base


class Investor(Base):
    __tablename__ = "investors"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100))
    telegram_id: Mapped[str | None] = mapped_column(String(100), index=True)
    account_type: Mapped[str] = mapped_column(String(20), default="Standard")
    account_status: Mapped[str] = mapped_column(String(50), default="Active")
    initial_deposit: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    current_balance: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    bank_details: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    transactions = relationship("Transaction", back_populates="investor", lazy="selectin")
    withdrawal_requests = relationship("WithdrawalRequest", back_populates="investor", lazy="selectin")


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    investor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("investors.id"), nullable=False)
    type: Mapped[str] = mapped_column(
        PgEnum("Deposit", "Withdrawal", "Earnings", "Fee", name="transaction_type", create_type=False),
        nullable=False,
    )
    amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        PgEnum("Pending", "Completed", "Failed", name="transaction_status", create_type=False),
        default="Pending",
    )
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    investor = relationship("Investor", back_populates="transactions")


class WithdrawalRequest(Base):
    __tablename__ = "withdrawal_requests"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    investor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("investors.id"), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        PgEnum("Pending", "Approved", "Rejected", name="withdrawal_status", create_type=False),
        default="Pending",
    )
    reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    investor = relationship("Investor", back_populates="withdrawal_requests")
