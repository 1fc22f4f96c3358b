"""Data Transfer Objects for application layer."""

from .billing_cycle import (
    AccountBillingCyclesResponse,
    AccountCycleResult,
    AccountCycleStatus,
    AccountSummary,
    BillingCycleDTO,
    UserBillingCyclesResponse,
)

__all__ = [
    "AccountBillingCyclesResponse",
    "AccountCycleResult",
    "AccountCycleStatus",
    "AccountSummary",
    "BillingCycleDTO",
    "UserBillingCyclesResponse",
]
