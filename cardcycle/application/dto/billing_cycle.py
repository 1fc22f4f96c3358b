"""Data transfer objects for billing cycle operations."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class AccountCycleStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class AccountSummary:
    """Account fields shown next to its cycles."""

    account_id: str
    name: str
    mask: Optional[str]
    issuer: str
    current_balance_cents: int
    credit_limit_cents: Optional[int]
    is_manual_limit: bool
    utilization: Optional[float]
    last_statement_date: Optional[date]
    next_payment_due_date: Optional[date]

    @classmethod
    def from_entity(cls, account) -> "AccountSummary":
        utilization = account.utilization
        return cls(
            account_id=str(account.id),
            name=account.name,
            mask=account.mask,
            issuer=account.issuer.value,
            current_balance_cents=account.current_balance_cents,
            credit_limit_cents=account.effective_credit_limit_cents,
            is_manual_limit=account.is_manual_limit,
            utilization=round(utilization, 4) if utilization is not None else None,
            last_statement_date=account.last_statement_date,
            next_payment_due_date=account.next_payment_due_date,
        )


@dataclass(frozen=True)
class BillingCycleDTO:
    """One billing cycle, labelled with its account."""

    cycle_id: str
    account_id: str
    account_name: str
    account_mask: Optional[str]
    start_date: date
    end_date: date
    total_spend_cents: int
    transaction_count: int
    statement_balance_cents: Optional[int]
    minimum_payment_cents: Optional[int]
    due_date: Optional[date]
    is_open: bool
    is_anchor: bool
    is_estimated: bool
    payment_detected: bool
    payment_status: str

    @classmethod
    def from_entity(cls, cycle, account) -> "BillingCycleDTO":
        return cls(
            cycle_id=str(cycle.id),
            account_id=str(cycle.account_id),
            account_name=account.name,
            account_mask=account.mask,
            start_date=cycle.start_date,
            end_date=cycle.end_date,
            total_spend_cents=cycle.total_spend_cents,
            transaction_count=cycle.transaction_count,
            statement_balance_cents=cycle.statement_balance_cents,
            minimum_payment_cents=cycle.minimum_payment_cents,
            due_date=cycle.due_date,
            is_open=cycle.is_open,
            is_anchor=cycle.is_anchor,
            is_estimated=cycle.is_estimated,
            payment_detected=cycle.payment_detected,
            payment_status=cycle.payment_status.value,
        )


@dataclass(frozen=True)
class AccountCycleResult:
    """Outcome of computing one account's cycles."""

    account: AccountSummary
    status: AccountCycleStatus
    cycle_count: int = 0
    error_code: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class UserBillingCyclesResponse:
    """Merged cycles for every account of a user."""

    user_id: str
    cycles: List[BillingCycleDTO] = field(default_factory=list)
    accounts: List[AccountCycleResult] = field(default_factory=list)


@dataclass(frozen=True)
class AccountBillingCyclesResponse:
    """Cycles for a single account."""

    account: AccountSummary
    cycles: List[BillingCycleDTO] = field(default_factory=list)
