"""
Fixtures for integration tests.

Provides:
- Test client for FastAPI app
- Mock statement provider client with configurable periods
- A fresh statement period cache per test
- In-memory database with helpers to seed accounts and transactions
"""

from datetime import date
from typing import AsyncGenerator, Dict, List
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from cardcycle.main import app
from cardcycle.core.dependencies import (
    get_account_repository,
    get_billing_cycle_repository,
    get_statement_cache,
    get_statement_client,
    get_transaction_repository,
)
from cardcycle.domain.entities import BoundaryPolicy, StatementPeriod
from cardcycle.domain.exceptions import TransientProviderError
from cardcycle.domain.interfaces import BillingCycleRepository, StatementProviderClient
from cardcycle.infrastructure.cache import InMemoryStatementPeriodCache
from cardcycle.infrastructure.database import (
    AccountModel,
    Base,
    TransactionModel,
    create_engine,
    create_sessionmaker,
)
from cardcycle.infrastructure.repositories import (
    PostgresAccountRepository,
    PostgresBillingCycleRepository,
    PostgresTransactionRepository,
)


# =============================================================================
# Mock Clients
# =============================================================================

class MockStatementProviderClient(StatementProviderClient):
    """Mock statement provider that returns configured periods per account."""

    def __init__(self, fail_mode: bool = False):
        self.fail_mode = fail_mode
        self.periods: Dict[str, List[StatementPeriod]] = {}
        self.call_count = 0

    async def get_statement_periods(self, account_id: UUID) -> List[StatementPeriod]:
        """Return configured periods or raise based on mode."""
        self.call_count += 1

        if self.fail_mode:
            raise TransientProviderError(
                message="Statement provider unavailable",
                status_code=503,
            )

        return list(self.periods.get(str(account_id), []))


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_engine("sqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest.fixture
def seed_account(test_session: AsyncSession):
    """
    Factory that inserts an account and its transactions.

    Transactions are (posted_date, amount_cents, description) tuples.
    Returns the new account's id.
    """

    async def _seed(transactions=(), **fields) -> str:
        values = dict(
            id=str(uuid4()),
            user_id="user_1",
            name="Sapphire Preferred",
            mask="4242",
            institution_name="Chase",
            current_balance_cents=-12000,
            provider_credit_limit_cents=1000000.0,
            last_statement_balance_cents=50000,
            last_statement_date=date(2024, 3, 15),
            next_payment_due_date=date(2024, 4, 9),
            minimum_payment_cents=3500,
            boundary_policy=BoundaryPolicy.fixed_day(15).to_dict(),
        )
        values.update(fields)

        account = AccountModel(**values)
        test_session.add(account)
        for posted, amount_cents, description in transactions:
            test_session.add(
                TransactionModel(
                    id=f"txn_{uuid4().hex}",
                    account_id=account.id,
                    amount_cents=amount_cents,
                    posted_date=posted,
                    description=description,
                )
            )
        await test_session.flush()
        return account.id

    return _seed


@pytest.fixture
def chase_transactions() -> list:
    """A $500 statement paid after close plus $120 of new spend."""
    return [
        (date(2024, 3, 1), 50000, "AMAZON MKTPLACE"),
        (date(2024, 3, 18), 5000, "WHOLE FOODS"),
        (date(2024, 3, 22), 4000, "SHELL OIL"),
        (date(2024, 3, 25), -50000, "AUTOPAY PAYMENT - THANK YOU"),
        (date(2024, 3, 28), 3000, "NETFLIX"),
    ]


# =============================================================================
# Mock Client Fixtures
# =============================================================================

@pytest.fixture
def mock_statement_client() -> MockStatementProviderClient:
    """Create a mock statement provider client."""
    return MockStatementProviderClient()


@pytest.fixture
def statement_cache() -> InMemoryStatementPeriodCache:
    """Create an empty statement period cache."""
    return InMemoryStatementPeriodCache()


@pytest.fixture
def billing_cycle_repository(test_session: AsyncSession) -> BillingCycleRepository:
    """Billing cycle repository used by the app under test."""
    return PostgresBillingCycleRepository(test_session)


# =============================================================================
# App Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def client(
    test_session: AsyncSession,
    mock_statement_client: MockStatementProviderClient,
    statement_cache: InMemoryStatementPeriodCache,
    billing_cycle_repository: BillingCycleRepository,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database
    - Mocks the statement provider client
    - Uses a per-test statement period cache
    """
    async def override_get_account_repository():
        return PostgresAccountRepository(test_session)

    async def override_get_transaction_repository():
        return PostgresTransactionRepository(test_session)

    async def override_get_billing_cycle_repository():
        return billing_cycle_repository

    def override_get_statement_client():
        return mock_statement_client

    def override_get_statement_cache():
        return statement_cache

    app.dependency_overrides[get_account_repository] = override_get_account_repository
    app.dependency_overrides[get_transaction_repository] = override_get_transaction_repository
    app.dependency_overrides[get_billing_cycle_repository] = override_get_billing_cycle_repository
    app.dependency_overrides[get_statement_client] = override_get_statement_client
    app.dependency_overrides[get_statement_cache] = override_get_statement_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
