"""Pydantic schemas for API request/response validation."""

from .billing_cycle import (
    AccountBillingCyclesResponseSchema,
    AccountCycleResultSchema,
    AccountSummarySchema,
    BillingCycleSchema,
    UserBillingCyclesResponseSchema,
)
from .error import ErrorResponseSchema

__all__ = [
    "AccountBillingCyclesResponseSchema",
    "AccountCycleResultSchema",
    "AccountSummarySchema",
    "BillingCycleSchema",
    "UserBillingCyclesResponseSchema",
    "ErrorResponseSchema",
]
