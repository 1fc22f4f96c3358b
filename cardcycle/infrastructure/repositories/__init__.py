"""Repository implementations."""

from .account_repository import PostgresAccountRepository
from .transaction_repository import PostgresTransactionRepository
from .billing_cycle_repository import PostgresBillingCycleRepository

__all__ = [
    "PostgresAccountRepository",
    "PostgresTransactionRepository",
    "PostgresBillingCycleRepository",
]
