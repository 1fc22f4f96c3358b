"""
Cycle spend aggregation.

Spend for a window is the signed sum of posted, non-payment transactions
whose classification date falls inside the window. Refunds and credits
reduce spend; payments are excluded entirely.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from cardcycle.domain.entities import IssuerClass, Transaction

from .classifier import is_payment


@dataclass(frozen=True)
class CycleSpend:
    total_spend_cents: int
    transaction_count: int


def aggregate_spend(
    transactions: Iterable[Transaction],
    start_date: date,
    end_date: date,
    today: date,
    is_open: bool = False,
    use_authorized_date: bool = False,
    issuer: Optional[IssuerClass] = None,
) -> CycleSpend:
    """
    Sum spend for one cycle window.

    Args:
        transactions: Candidate transactions for the account
        start_date: Window start (inclusive)
        end_date: Window end (inclusive)
        today: Current date; the open window is capped here
        is_open: Whether this is the open window
        use_authorized_date: Classify by authorized date when available
        issuer: Issuer class for payment keyword overrides

    Returns:
        CycleSpend with signed total and transaction count
    """
    effective_end = min(end_date, today) if is_open else end_date

    total = 0
    count = 0
    for txn in transactions:
        if txn.pending:
            continue
        when = txn.classification_date(use_authorized_date)
        if when < start_date or when > effective_end:
            continue
        if is_payment(txn.description, issuer):
            continue
        total += txn.amount_cents
        count += 1

    return CycleSpend(total_spend_cents=total, transaction_count=count)


def payments_after(
    transactions: Iterable[Transaction],
    close_date: date,
    issuer: Optional[IssuerClass] = None,
) -> list:
    """Posted payment transactions dated after a statement close."""
    return [
        txn
        for txn in transactions
        if not txn.pending
        and txn.posted_date > close_date
        and is_payment(txn.description, issuer)
    ]
