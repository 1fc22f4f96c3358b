"""Persistence domain exceptions."""

from .base import DomainException


class PersistenceConflictError(DomainException):
    """Raised when a billing cycle upsert races or fails to write."""

    def __init__(self, account_id: str, message: str = "Billing cycle write failed"):
        super().__init__(
            message=f"{message} for account: {account_id}",
            code="PERSISTENCE_CONFLICT",
        )
        self.account_id = account_id
