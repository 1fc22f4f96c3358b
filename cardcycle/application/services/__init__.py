"""Application services (use cases)."""

from .billing_cycle_service import BillingCycleService

__all__ = [
    "BillingCycleService",
]
