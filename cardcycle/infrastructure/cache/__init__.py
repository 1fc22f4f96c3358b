"""Cache implementations."""

from .statement_cache import InMemoryStatementPeriodCache, statement_period_cache

__all__ = [
    "InMemoryStatementPeriodCache",
    "statement_period_cache",
]
