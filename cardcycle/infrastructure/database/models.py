"""SQLAlchemy ORM models for credit accounts and billing cycles."""

from datetime import datetime, date
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class AccountModel(Base):
    """Credit card account snapshot written by the sync layer."""

    __tablename__ = "credit_accounts"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mask: Mapped[str | None] = mapped_column(String(8), nullable=True)
    institution_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issuer: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_balance_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    provider_credit_limit_cents: Mapped[float | None] = mapped_column(Float, nullable=True)
    manual_credit_limit_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_statement_balance_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_statement_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    next_payment_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    minimum_payment_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    open_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    boundary_policy: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    billing_cycles: Mapped[list["BillingCycleModel"]] = relationship(
        "BillingCycleModel",
        back_populates="account",
        cascade="all, delete-orphan",
    )


class TransactionModel(Base):
    """Posted or pending card transaction."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    account_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("credit_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    posted_date: Mapped[date] = mapped_column(Date, nullable=False)
    authorized_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class BillingCycleModel(Base):
    """Derived billing cycle, one row per account and start date."""

    __tablename__ = "billing_cycles"
    __table_args__ = (
        UniqueConstraint("account_id", "start_date", name="uq_billing_cycles_account_start"),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    account_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("credit_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_spend_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    transaction_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    statement_balance_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    minimum_payment_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_anchor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_estimated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_detected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="current",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    account: Mapped["AccountModel"] = relationship(
        "AccountModel",
        back_populates="billing_cycles",
    )
