"""External client and cache interfaces."""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from cardcycle.domain.entities import CachedStatementPeriods, StatementPeriod


class StatementProviderClient(ABC):
    """
    Abstract client for the data provider's statement listings.

    Statement periods confirm boundaries that are otherwise derived
    heuristically.
    """

    @abstractmethod
    async def get_statement_periods(self, account_id: UUID) -> List[StatementPeriod]:
        """
        Fetch confirmed statement periods for an account.

        Args:
            account_id: The account's identifier

        Returns:
            Statement periods, newest first

        Raises:
            TransientProviderError: If the provider fails or times out
        """
        ...


class StatementPeriodCache(ABC):
    """Cache of fetched statement periods, keyed by account."""

    @abstractmethod
    async def get(self, account_id: UUID) -> Optional[CachedStatementPeriods]:
        """Return the cached entry for an account, fresh or not."""
        ...

    @abstractmethod
    async def set(self, account_id: UUID, entry: CachedStatementPeriods) -> None:
        """Store an entry for an account."""
        ...
