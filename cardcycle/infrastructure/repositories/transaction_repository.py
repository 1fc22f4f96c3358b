"""PostgreSQL implementation of TransactionRepository."""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cardcycle.domain.entities import Transaction
from cardcycle.domain.interfaces import TransactionRepository
from cardcycle.infrastructure.database.models import TransactionModel


class PostgresTransactionRepository(TransactionRepository):
    """PostgreSQL implementation of the Transaction repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_account_id(self, account_id: UUID) -> List[Transaction]:
        """Retrieve transactions for an account, ordered by posted date."""
        stmt = (
            select(TransactionModel)
            .where(TransactionModel.account_id == str(account_id))
            .order_by(TransactionModel.posted_date, TransactionModel.id)
        )
        result = await self._session.execute(stmt)

        return [
            Transaction(
                id=model.id,
                account_id=UUID(model.account_id),
                amount_cents=model.amount_cents,
                posted_date=model.posted_date,
                authorized_date=model.authorized_date,
                pending=model.pending,
                description=model.description or "",
            )
            for model in result.scalars().all()
        ]
