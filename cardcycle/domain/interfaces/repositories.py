"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from cardcycle.domain.entities import Account, BillingCycle, Transaction


class AccountRepository(ABC):
    """
    Abstract repository for credit card accounts.

    Accounts are written by the provider sync job; the cycle engine only
    reads them.
    """

    @abstractmethod
    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """
        Retrieve an account by ID.

        Args:
            account_id: The account's unique identifier

        Returns:
            The account if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> List[Account]:
        """
        Retrieve all accounts owned by a user.

        Args:
            user_id: The user's identifier

        Returns:
            List of accounts, in no guaranteed order
        """
        ...


class TransactionRepository(ABC):
    """Abstract repository for card transactions."""

    @abstractmethod
    async def get_by_account_id(self, account_id: UUID) -> List[Transaction]:
        """
        Retrieve every stored transaction for an account.

        Args:
            account_id: The account's unique identifier

        Returns:
            List of transactions in any order
        """
        ...


class BillingCycleRepository(ABC):
    """
    Abstract repository for derived billing cycles.

    Cycles are keyed by (account_id, start_date). Writes are full
    overwrites of the derived fields, never incremental patches.
    """

    @abstractmethod
    async def upsert_many(
        self,
        account_id: UUID,
        cycles: List[BillingCycle],
    ) -> List[BillingCycle]:
        """
        Create or update every cycle for one account in a single write.

        Args:
            account_id: The owning account
            cycles: Freshly computed cycles

        Returns:
            The cycles with stored identifiers populated

        Raises:
            PersistenceConflictError: If the write races or fails
        """
        ...

    @abstractmethod
    async def get_by_account_id(self, account_id: UUID) -> List[BillingCycle]:
        """
        Retrieve stored cycles for an account.

        Returns:
            List of cycles, newest start date first
        """
        ...
