"""Database infrastructure."""

from .connection import (
    DatabaseSessionManager,
    create_engine,
    create_sessionmaker,
    db_manager,
    get_db_session,
    normalize_database_url,
)
from .models import Base, AccountModel, TransactionModel, BillingCycleModel

__all__ = [
    "DatabaseSessionManager",
    "create_engine",
    "create_sessionmaker",
    "db_manager",
    "get_db_session",
    "normalize_database_url",
    "Base",
    "AccountModel",
    "TransactionModel",
    "BillingCycleModel",
]
