"""
Domain Interfaces (Ports)
"""

from .repositories import AccountRepository, BillingCycleRepository, TransactionRepository
from .clients import StatementPeriodCache, StatementProviderClient

__all__ = [
    "AccountRepository",
    "BillingCycleRepository",
    "TransactionRepository",
    "StatementPeriodCache",
    "StatementProviderClient",
]
