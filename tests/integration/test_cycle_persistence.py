"""
Integration tests for billing cycle persistence.

These tests verify:
1. Upserts are keyed on (account_id, start_date) and are idempotent
2. Recomputed cycles overwrite every derived field
3. Shifted cycles replace the rows they overlap; older history is kept
4. A failed write raises PersistenceConflictError and leaves stored rows intact
"""

from datetime import date
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from cardcycle.domain.entities import BillingCycle, PaymentStatus
from cardcycle.domain.exceptions import PersistenceConflictError
from cardcycle.infrastructure.database import BillingCycleModel
from cardcycle.infrastructure.repositories import PostgresBillingCycleRepository

AS_OF = "2024-04-01"


def make_cycles(account_id: UUID, spend: int = 1000):
    return [
        BillingCycle(
            account_id=account_id,
            start_date=date(2024, 3, 16),
            end_date=date(2024, 4, 15),
            total_spend_cents=spend,
            is_open=True,
        ),
        BillingCycle(
            account_id=account_id,
            start_date=date(2024, 2, 16),
            end_date=date(2024, 3, 15),
            total_spend_cents=spend * 2,
            statement_balance_cents=spend * 2,
            minimum_payment_cents=2500,
            is_anchor=True,
            payment_status=PaymentStatus.DUE,
        ),
        BillingCycle(
            account_id=account_id,
            start_date=date(2024, 1, 16),
            end_date=date(2024, 2, 15),
            total_spend_cents=spend * 3,
            statement_balance_cents=spend * 3,
            minimum_payment_cents=2500,
            is_estimated=True,
            payment_status=PaymentStatus.PAID,
        ),
    ]


async def count_rows(session, account_id) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(BillingCycleModel)
        .where(BillingCycleModel.account_id == str(account_id))
    )
    return result.scalar_one()


# =============================================================================
# Repository Tests
# =============================================================================

class TestBillingCycleUpsert:
    """Tests for PostgresBillingCycleRepository.upsert_many."""

    @pytest.mark.asyncio
    async def test_inserts_new_cycles(self, test_session, seed_account):
        account_id = UUID(await seed_account())
        repo = PostgresBillingCycleRepository(test_session)

        await repo.upsert_many(account_id, make_cycles(account_id))

        stored = await repo.get_by_account_id(account_id)
        assert [c.start_date for c in stored] == [
            date(2024, 3, 16),
            date(2024, 2, 16),
            date(2024, 1, 16),
        ]
        assert stored[1].is_anchor is True
        assert stored[1].payment_status == PaymentStatus.DUE

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, test_session, seed_account):
        """Writing the same cycles twice keeps one row per start date and its id."""
        account_id = UUID(await seed_account())
        repo = PostgresBillingCycleRepository(test_session)

        first = await repo.upsert_many(account_id, make_cycles(account_id))
        first_ids = [c.id for c in first]
        second = await repo.upsert_many(account_id, make_cycles(account_id))

        assert [c.id for c in second] == first_ids
        assert await count_rows(test_session, account_id) == 3

    @pytest.mark.asyncio
    async def test_recompute_overwrites_fields(self, test_session, seed_account):
        account_id = UUID(await seed_account())
        repo = PostgresBillingCycleRepository(test_session)

        await repo.upsert_many(account_id, make_cycles(account_id, spend=1000))
        await repo.upsert_many(account_id, make_cycles(account_id, spend=7000))

        stored = await repo.get_by_account_id(account_id)
        assert [c.total_spend_cents for c in stored] == [7000, 14000, 21000]
        assert stored[1].statement_balance_cents == 14000

    @pytest.mark.asyncio
    async def test_shifted_cycles_replace_overlapping_rows(self, test_session, seed_account):
        account_id = UUID(await seed_account())
        repo = PostgresBillingCycleRepository(test_session)

        await repo.upsert_many(account_id, make_cycles(account_id))
        shifted = make_cycles(account_id)
        shifted[2].start_date = date(2024, 1, 15)
        await repo.upsert_many(account_id, shifted)

        stored = await repo.get_by_account_id(account_id)
        assert [c.start_date for c in stored] == [
            date(2024, 3, 16),
            date(2024, 2, 16),
            date(2024, 1, 15),
        ]

    @pytest.mark.asyncio
    async def test_rows_older_than_span_are_kept(self, test_session, seed_account):
        account_id = UUID(await seed_account())
        repo = PostgresBillingCycleRepository(test_session)

        await repo.upsert_many(account_id, make_cycles(account_id))
        await repo.upsert_many(account_id, make_cycles(account_id)[:2])

        stored = await repo.get_by_account_id(account_id)
        assert [c.start_date for c in stored] == [
            date(2024, 3, 16),
            date(2024, 2, 16),
            date(2024, 1, 16),
        ]

    @pytest.mark.asyncio
    async def test_accounts_are_isolated(self, test_session, seed_account):
        first_id = UUID(await seed_account())
        second_id = UUID(await seed_account(name="Double Cash"))
        repo = PostgresBillingCycleRepository(test_session)

        await repo.upsert_many(first_id, make_cycles(first_id))
        await repo.upsert_many(second_id, make_cycles(second_id)[:1])

        assert await count_rows(test_session, first_id) == 3
        assert await count_rows(test_session, second_id) == 1

    @pytest.mark.asyncio
    async def test_failed_write_raises_conflict(self, test_session, seed_account):
        """A duplicate start date violates the unique key and rolls back alone."""
        account_id = UUID(await seed_account())
        repo = PostgresBillingCycleRepository(test_session)
        await repo.upsert_many(account_id, make_cycles(account_id))

        duplicated = make_cycles(account_id, spend=5000)
        duplicated.append(
            BillingCycle(
                account_id=account_id,
                start_date=date(2024, 3, 16),
                end_date=date(2024, 4, 15),
            )
        )

        with pytest.raises(PersistenceConflictError) as exc_info:
            await repo.upsert_many(account_id, duplicated)

        assert exc_info.value.code == "PERSISTENCE_CONFLICT"
        stored = await repo.get_by_account_id(account_id)
        assert [c.total_spend_cents for c in stored] == [1000, 2000, 3000]


# =============================================================================
# API Persistence Tests
# =============================================================================

class TestRecomputeViaApi:
    """Tests for repeated computation through the API."""

    @pytest.mark.asyncio
    async def test_recomputing_keeps_cycle_ids(
        self,
        client: AsyncClient,
        seed_account,
        chase_transactions,
    ):
        account_id = await seed_account(transactions=chase_transactions)
        url = f"/v1/accounts/{account_id}/billing-cycles"

        first = await client.get(url, params={"as_of": AS_OF})
        second = await client.get(url, params={"as_of": AS_OF})

        assert [c["cycle_id"] for c in first.json()["cycles"]] == [
            c["cycle_id"] for c in second.json()["cycles"]
        ]

    @pytest.mark.asyncio
    async def test_later_computation_closes_previous_open_cycle(
        self,
        client: AsyncClient,
        test_session,
        seed_account,
    ):
        """A close passing after the last run turns the stored open cycle into a closed one."""
        account_id = await seed_account()
        url = f"/v1/accounts/{account_id}/billing-cycles"

        await client.get(url, params={"as_of": AS_OF})
        await client.get(url, params={"as_of": "2024-04-20"})

        stored = (await client.get(f"{url}/stored")).json()["cycles"]
        assert stored[0]["start_date"] == "2024-04-16"
        assert stored[0]["is_open"] is True
        assert stored[1]["is_open"] is False
        assert await count_rows(test_session, account_id) == 15
