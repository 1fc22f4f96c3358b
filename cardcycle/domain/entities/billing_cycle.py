"""Billing cycle entity representing one derived statement period."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class PaymentStatus(str, Enum):
    CURRENT = "current"
    DUE = "due"
    PAID = "paid"
    OUTSTANDING = "outstanding"


@dataclass
class BillingCycle:
    """
    A statement period for one account.

    ``end_date`` is inclusive. Cycles for an account are contiguous:
    the next cycle starts the day after this one ends.
    """

    account_id: UUID
    start_date: date
    end_date: date
    total_spend_cents: int = 0
    transaction_count: int = 0
    statement_balance_cents: Optional[int] = None
    minimum_payment_cents: Optional[int] = None
    due_date: Optional[date] = None
    is_open: bool = False
    is_anchor: bool = False
    is_estimated: bool = False
    payment_detected: bool = False
    payment_status: PaymentStatus = PaymentStatus.CURRENT
    id: UUID = field(default_factory=uuid4)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def length_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

