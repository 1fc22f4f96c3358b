"""Dependency injection for FastAPI."""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cardcycle.application.services import BillingCycleService
from cardcycle.core.config import settings
from cardcycle.domain.interfaces import StatementPeriodCache, StatementProviderClient
from cardcycle.infrastructure.cache import statement_period_cache
from cardcycle.infrastructure.clients import HttpStatementProviderClient
from cardcycle.infrastructure.database import get_db_session
from cardcycle.infrastructure.repositories import (
    PostgresAccountRepository,
    PostgresBillingCycleRepository,
    PostgresTransactionRepository,
)


# Repository dependencies
async def get_account_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresAccountRepository:
    """Get an AccountRepository instance."""
    return PostgresAccountRepository(session)


async def get_transaction_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresTransactionRepository:
    """Get a TransactionRepository instance."""
    return PostgresTransactionRepository(session)


async def get_billing_cycle_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresBillingCycleRepository:
    """Get a BillingCycleRepository instance."""
    return PostgresBillingCycleRepository(session)


# External client dependencies
def get_statement_client() -> Optional[StatementProviderClient]:
    """Get a StatementProviderClient instance, or None when disabled."""
    if not settings.statement_provider_enabled:
        return None
    return HttpStatementProviderClient()


def get_statement_cache() -> StatementPeriodCache:
    """Get the process-wide statement period cache."""
    return statement_period_cache


# Service dependencies
async def get_billing_cycle_service(
    account_repo: Annotated[PostgresAccountRepository, Depends(get_account_repository)],
    transaction_repo: Annotated[
        PostgresTransactionRepository, Depends(get_transaction_repository)
    ],
    cycle_repo: Annotated[
        PostgresBillingCycleRepository, Depends(get_billing_cycle_repository)
    ],
    statement_client: Annotated[
        Optional[StatementProviderClient], Depends(get_statement_client)
    ],
    statement_cache: Annotated[StatementPeriodCache, Depends(get_statement_cache)],
) -> BillingCycleService:
    """Get a BillingCycleService instance with all dependencies."""
    return BillingCycleService(
        account_repository=account_repo,
        transaction_repository=transaction_repo,
        billing_cycle_repository=cycle_repo,
        statement_cache=statement_cache,
        statement_client=statement_client,
        cache_ttl=timedelta(hours=settings.statement_cache_ttl_hours),
    )
