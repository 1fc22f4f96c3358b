"""
Payment status assignment.

Statuses are derived from the account balance rather than from matched
payments: whatever is owed beyond the latest statement and the open
cycle's spend is attributed to older statements, newest first.
"""

from typing import List

from cardcycle.domain.entities import Account, BillingCycle, PaymentStatus


def assign_payment_status(account: Account, cycles: List[BillingCycle]) -> None:
    """
    Set ``payment_status`` on each cycle in place.

    Args:
        account: Account snapshot (current balance)
        cycles: Cycles for the account, newest start first
    """
    open_spend = 0
    closed: List[BillingCycle] = []
    for cycle in cycles:
        if cycle.is_open:
            cycle.payment_status = PaymentStatus.CURRENT
            open_spend += cycle.total_spend_cents
        else:
            closed.append(cycle)

    if not closed:
        return

    latest = closed[0]
    latest_balance = latest.statement_balance_cents or 0
    if latest.payment_detected or latest_balance == 0:
        latest.payment_status = PaymentStatus.PAID
    else:
        latest.payment_status = PaymentStatus.DUE

    unpaid_latest = 0 if latest.payment_status == PaymentStatus.PAID else latest_balance
    remaining = account.amount_owed_cents - unpaid_latest - max(open_spend, 0)
    for cycle in closed[1:]:
        if remaining > 0:
            cycle.payment_status = PaymentStatus.OUTSTANDING
            remaining -= cycle.statement_balance_cents or 0
        else:
            cycle.payment_status = PaymentStatus.PAID
