"""Transaction entity representing a card transaction."""

from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class Transaction:
    """
    Immutable representation of a posted or pending card transaction.

    Attributes:
        id: Provider transaction identifier
        account_id: Owning account
        amount_cents: Signed amount (positive = charge, negative = refund
            or credit)
        posted_date: Date the transaction posted
        authorized_date: Date the transaction was authorized, if known
        pending: True until the transaction posts
        description: Free-text name used for classification
    """

    id: str
    account_id: UUID
    amount_cents: int
    posted_date: date
    authorized_date: Optional[date] = None
    pending: bool = False
    description: str = ""

    def classification_date(self, use_authorized_date: bool = False) -> date:
        """Date used to place the transaction into a billing cycle."""
        if use_authorized_date and self.authorized_date is not None:
            return self.authorized_date
        return self.posted_date
