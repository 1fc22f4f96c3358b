"""External API client implementations."""

from .statement_client import HttpStatementProviderClient

__all__ = [
    "HttpStatementProviderClient",
]
