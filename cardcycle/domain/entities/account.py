"""Credit card account entity and its statement boundary policy."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID, uuid4

from cardcycle.domain.exceptions import InvalidBoundaryPolicyError


class IssuerClass(str, Enum):
    """Institution classification used for per-issuer policies."""

    AMEX = "amex"
    BANK_OF_AMERICA = "bank_of_america"
    CAPITAL_ONE = "capital_one"
    CHASE = "chase"
    CITI = "citi"
    DISCOVER = "discover"
    ROBINHOOD = "robinhood"
    OTHER = "other"


class BoundaryPolicyType(str, Enum):
    """How statement close dates recur."""

    FIXED_DAY_OF_MONTH = "fixed_day_of_month"
    DAYS_BEFORE_MONTH_END = "days_before_month_end"
    DYNAMIC_ANCHOR = "dynamic_anchor"
    EXPLICIT_DATES = "explicit_dates"


@dataclass(frozen=True)
class BoundaryPolicy:
    """
    Configuration describing how a statement period's close date recurs.

    Attributes:
        type: Recurrence rule
        day: Close day for fixed-day-of-month, or target close day for
            dynamic-anchor
        days_before_end: N for days-before-month-end
        grace_days: Days from close to due date (dynamic-anchor only)
        target_due_day: Preferred due day of month (dynamic-anchor only)
        close_dates: Explicit close dates supplied by a manual override
        use_authorized_date: Align transactions on authorized date
            instead of posted date
    """

    type: BoundaryPolicyType
    day: Optional[int] = None
    days_before_end: Optional[int] = None
    grace_days: Optional[int] = None
    target_due_day: Optional[int] = None
    close_dates: Tuple[date, ...] = ()
    use_authorized_date: bool = False

    @classmethod
    def fixed_day(cls, day: int, **kwargs) -> "BoundaryPolicy":
        return cls(type=BoundaryPolicyType.FIXED_DAY_OF_MONTH, day=day, **kwargs)

    @classmethod
    def days_before_month_end(cls, days: int, **kwargs) -> "BoundaryPolicy":
        return cls(
            type=BoundaryPolicyType.DAYS_BEFORE_MONTH_END,
            days_before_end=days,
            **kwargs,
        )

    @classmethod
    def dynamic_anchor(
        cls,
        target_day: int,
        grace_days: Optional[int] = None,
        target_due_day: Optional[int] = None,
        **kwargs,
    ) -> "BoundaryPolicy":
        return cls(
            type=BoundaryPolicyType.DYNAMIC_ANCHOR,
            day=target_day,
            grace_days=grace_days,
            target_due_day=target_due_day,
            **kwargs,
        )

    @classmethod
    def explicit(cls, close_dates, **kwargs) -> "BoundaryPolicy":
        return cls(
            type=BoundaryPolicyType.EXPLICIT_DATES,
            close_dates=tuple(sorted(set(close_dates))),
            **kwargs,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type.value,
            "day": self.day,
            "days_before_end": self.days_before_end,
            "grace_days": self.grace_days,
            "target_due_day": self.target_due_day,
            "close_dates": [d.isoformat() for d in self.close_dates],
            "use_authorized_date": self.use_authorized_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BoundaryPolicy":
        """
        Rebuild a policy from its stored form.

        Raises:
            InvalidBoundaryPolicyError: If the stored value cannot be parsed
        """
        try:
            return cls(
                type=BoundaryPolicyType(data["type"]),
                day=data.get("day"),
                days_before_end=data.get("days_before_end"),
                grace_days=data.get("grace_days"),
                target_due_day=data.get("target_due_day"),
                close_dates=tuple(
                    date.fromisoformat(d) for d in data.get("close_dates") or ()
                ),
                use_authorized_date=bool(data.get("use_authorized_date", False)),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidBoundaryPolicyError(f"Unreadable boundary policy: {e}") from e


@dataclass
class Account:
    """
    A tracked credit card account as reported by the data provider.

    Balances are signed: the absolute value of ``current_balance_cents``
    is the amount owed.
    """

    user_id: str
    name: str
    mask: Optional[str] = None
    current_balance_cents: int = 0
    provider_credit_limit_cents: Optional[float] = None
    manual_credit_limit_cents: Optional[int] = None
    last_statement_balance_cents: Optional[int] = None
    last_statement_date: Optional[date] = None
    next_payment_due_date: Optional[date] = None
    minimum_payment_cents: Optional[int] = None
    open_date: Optional[date] = None
    boundary_policy: Optional[BoundaryPolicy] = None
    issuer: IssuerClass = IssuerClass.OTHER
    institution_name: Optional[str] = None
    policy_error: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_anchor_signal(self) -> bool:
        """True when a reported statement date or a manual policy exists."""
        return self.last_statement_date is not None or self.boundary_policy is not None

    @property
    def uses_authorized_date(self) -> bool:
        return bool(self.boundary_policy and self.boundary_policy.use_authorized_date)

    @property
    def effective_credit_limit_cents(self) -> Optional[int]:
        """
        Credit limit used for display and utilization.

        A finite, positive provider limit is authoritative; the manual
        override is only consulted when the provider has none.
        """
        provider = self.provider_credit_limit_cents
        if provider is not None and math.isfinite(provider) and provider > 0:
            return int(provider)
        if self.manual_credit_limit_cents and self.manual_credit_limit_cents > 0:
            return self.manual_credit_limit_cents
        return None

    @property
    def is_manual_limit(self) -> bool:
        provider = self.provider_credit_limit_cents
        provider_valid = provider is not None and math.isfinite(provider) and provider > 0
        return not provider_valid and self.effective_credit_limit_cents is not None

    @property
    def amount_owed_cents(self) -> int:
        return abs(self.current_balance_cents)

    @property
    def utilization(self) -> Optional[float]:
        limit = self.effective_credit_limit_cents
        if not limit:
            return None
        return self.amount_owed_cents / limit
