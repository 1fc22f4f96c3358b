"""PostgreSQL implementation of AccountRepository."""

from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cardcycle.domain.entities import Account, BoundaryPolicy, IssuerClass
from cardcycle.domain.exceptions import InvalidBoundaryPolicyError
from cardcycle.domain.interfaces import AccountRepository
from cardcycle.infrastructure.database.models import AccountModel
from cardcycle.service.cycles import classify_issuer

logger = structlog.get_logger(__name__)


class PostgresAccountRepository(AccountRepository):
    """
    PostgreSQL implementation of the Account repository.

    Rows are written by the provider sync job; this repository only reads.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Retrieve an account by ID."""
        stmt = select(AccountModel).where(AccountModel.id == str(account_id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_by_user_id(self, user_id: str) -> List[Account]:
        """Retrieve all accounts for a user."""
        stmt = (
            select(AccountModel)
            .where(AccountModel.user_id == user_id)
            .order_by(AccountModel.name)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: AccountModel) -> Account:
        """
        Convert database model to domain entity.

        Rows come from the sync job, so an unknown issuer is reclassified
        from the account names and an unreadable policy is carried as
        ``policy_error`` for the caller to fail that account alone.
        """
        log = logger.bind(account_id=model.id)
        issuer = self._issuer(model, log)

        policy: Optional[BoundaryPolicy] = None
        policy_error: Optional[str] = None
        if model.boundary_policy:
            try:
                policy = BoundaryPolicy.from_dict(model.boundary_policy)
            except InvalidBoundaryPolicyError as e:
                log.warning("boundary_policy_unreadable", message=e.message)
                policy_error = e.message

        return Account(
            id=UUID(model.id),
            user_id=model.user_id,
            name=model.name,
            mask=model.mask,
            institution_name=model.institution_name,
            issuer=issuer,
            current_balance_cents=model.current_balance_cents,
            provider_credit_limit_cents=model.provider_credit_limit_cents,
            manual_credit_limit_cents=model.manual_credit_limit_cents,
            last_statement_balance_cents=model.last_statement_balance_cents,
            last_statement_date=model.last_statement_date,
            next_payment_due_date=model.next_payment_due_date,
            minimum_payment_cents=model.minimum_payment_cents,
            open_date=model.open_date,
            boundary_policy=policy,
            policy_error=policy_error,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _issuer(model: AccountModel, log) -> IssuerClass:
        if model.issuer:
            try:
                return IssuerClass(model.issuer)
            except ValueError:
                log.warning("issuer_unrecognized", issuer=model.issuer)
        return classify_issuer(model.institution_name, model.name)
