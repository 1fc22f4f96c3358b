"""PostgreSQL implementation of BillingCycleRepository."""

from datetime import datetime
from typing import List
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardcycle.domain.entities import BillingCycle, PaymentStatus
from cardcycle.domain.exceptions import PersistenceConflictError
from cardcycle.domain.interfaces import BillingCycleRepository
from cardcycle.infrastructure.database.models import BillingCycleModel

logger = structlog.get_logger(__name__)


class PostgresBillingCycleRepository(BillingCycleRepository):
    """
    PostgreSQL implementation of the BillingCycle repository.

    Each account's cycles are written inside a savepoint, so a failed
    account rolls back alone and the surrounding transaction stays usable.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def upsert_many(
        self,
        account_id: UUID,
        cycles: List[BillingCycle],
    ) -> List[BillingCycle]:
        """
        Overwrite the stored cycles of an account.

        Rows are matched on (account_id, start_date). Matching rows have
        every derived field replaced and new rows are inserted. Stored rows
        that overlap the recomputed span without matching a cycle are
        removed; rows wholly older than the span are kept as history.
        """
        try:
            async with self._session.begin_nested():
                stmt = select(BillingCycleModel).where(
                    BillingCycleModel.account_id == str(account_id)
                )
                result = await self._session.execute(stmt)
                existing = {model.start_date: model for model in result.scalars().all()}

                now = datetime.utcnow()
                for cycle in cycles:
                    model = existing.pop(cycle.start_date, None)
                    if model is None:
                        model = BillingCycleModel(
                            id=str(cycle.id),
                            account_id=str(account_id),
                            start_date=cycle.start_date,
                        )
                        self._session.add(model)
                    else:
                        cycle.id = UUID(model.id)

                    self._apply(model, cycle)
                    model.updated_at = now
                    cycle.updated_at = now

                span_start = min((c.start_date for c in cycles), default=None)
                superseded = [
                    m.id
                    for m in existing.values()
                    if span_start is not None and m.end_date >= span_start
                ]
                if superseded:
                    await self._session.execute(
                        delete(BillingCycleModel).where(BillingCycleModel.id.in_(superseded))
                    )

                await self._session.flush()
        except SQLAlchemyError as e:
            logger.warning(
                "cycle_upsert_failed",
                account_id=str(account_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceConflictError(str(account_id)) from e

        return cycles

    async def get_by_account_id(self, account_id: UUID) -> List[BillingCycle]:
        """Retrieve stored cycles for an account, newest start first."""
        stmt = (
            select(BillingCycleModel)
            .where(BillingCycleModel.account_id == str(account_id))
            .order_by(BillingCycleModel.start_date.desc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    @staticmethod
    def _apply(model: BillingCycleModel, cycle: BillingCycle) -> None:
        model.end_date = cycle.end_date
        model.total_spend_cents = cycle.total_spend_cents
        model.transaction_count = cycle.transaction_count
        model.statement_balance_cents = cycle.statement_balance_cents
        model.minimum_payment_cents = cycle.minimum_payment_cents
        model.due_date = cycle.due_date
        model.is_open = cycle.is_open
        model.is_anchor = cycle.is_anchor
        model.is_estimated = cycle.is_estimated
        model.payment_detected = cycle.payment_detected
        model.payment_status = cycle.payment_status.value

    def _to_entity(self, model: BillingCycleModel) -> BillingCycle:
        """Convert database model to domain entity."""
        return BillingCycle(
            id=UUID(model.id),
            account_id=UUID(model.account_id),
            start_date=model.start_date,
            end_date=model.end_date,
            total_spend_cents=model.total_spend_cents,
            transaction_count=model.transaction_count,
            statement_balance_cents=model.statement_balance_cents,
            minimum_payment_cents=model.minimum_payment_cents,
            due_date=model.due_date,
            is_open=model.is_open,
            is_anchor=model.is_anchor,
            is_estimated=model.is_estimated,
            payment_detected=model.payment_detected,
            payment_status=PaymentStatus(model.payment_status),
            updated_at=model.updated_at,
        )
