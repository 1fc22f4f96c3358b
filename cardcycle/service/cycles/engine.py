"""
Billing Cycle Engine for CardCycle.

This module derives the billing cycles of one account:
1. Resolve the statement anchor (or fall back to a best-effort window)
2. Generate contiguous cycle boundaries around the anchor
3. Aggregate spend per window
4. Reconcile statement figures against the provider's reported values
5. Estimate due dates and assign payment statuses
6. Apply the issuer's display window

This is the main entry point for the cycles module. It is pure: all
inputs, including today's date, are passed in.
"""

from datetime import date
from typing import Iterable, List, Optional

from cardcycle.domain.entities import (
    Account,
    BillingCycle,
    PaymentStatus,
    StatementPeriod,
    Transaction,
)
from cardcycle.domain.exceptions import MissingAnchorError

from .aggregator import aggregate_spend
from .boundaries import (
    best_effort_window,
    effective_policy,
    generate_boundaries,
    resolve_anchor,
)
from .display_policy import apply_display_policy
from .due_dates import due_date_for_close
from .payment_status import assign_payment_status
from .reconciliation import reconcile_cycle
from .settings import CycleSettings, cycle_settings


def calculate_billing_cycles(
    account: Account,
    transactions: Iterable[Transaction],
    today: date,
    statement_periods: Iterable[StatementPeriod] = (),
    settings: CycleSettings = cycle_settings,
    apply_display_window: bool = True,
) -> List[BillingCycle]:
    """
    Derive billing cycles for an account.

    Accounts without any anchor signal get a single provisional window
    instead of fabricated statement history.

    Args:
        account: Account snapshot
        transactions: Transactions for the account, in any order
        today: Current date
        statement_periods: Provider-confirmed statement periods
        settings: Cycle settings (uses defaults if not provided)
        apply_display_window: Restrict output to the issuer's display window

    Returns:
        Billing cycles, newest start first

    Raises:
        InvalidBoundaryPolicyError: If the account's policy is invalid
    """
    ordered = sorted(transactions, key=lambda t: (t.posted_date, t.id))

    try:
        anchor = resolve_anchor(account, today, settings)
    except MissingAnchorError:
        return [_best_effort_cycle(account, ordered, today, settings)]

    boundaries = generate_boundaries(
        anchor=anchor,
        policy=effective_policy(account),
        today=today,
        periods=statement_periods,
        reported_anchor=account.last_statement_date,
        settings=settings,
    )

    cycles: List[BillingCycle] = []
    for window in boundaries.windows():
        if account.open_date is not None and window.end_date < account.open_date:
            continue

        spend = aggregate_spend(
            ordered,
            start_date=window.start_date,
            end_date=window.end_date,
            today=today,
            is_open=window.is_open,
            use_authorized_date=account.uses_authorized_date,
            issuer=account.issuer,
        )
        figures = reconcile_cycle(
            account,
            ordered,
            end_date=window.end_date,
            total_spend_cents=spend.total_spend_cents,
            is_open=window.is_open,
            is_anchor=window.is_anchor,
            settings=settings,
        )
        cycles.append(
            BillingCycle(
                account_id=account.id,
                start_date=window.start_date,
                end_date=window.end_date,
                total_spend_cents=spend.total_spend_cents,
                transaction_count=spend.transaction_count,
                statement_balance_cents=figures.statement_balance_cents,
                minimum_payment_cents=figures.minimum_payment_cents,
                due_date=due_date_for_close(account, window.end_date, anchor, settings),
                is_open=window.is_open,
                is_anchor=window.is_anchor,
                is_estimated=not window.is_anchor,
                payment_detected=figures.payment_detected,
            )
        )

    assign_payment_status(account, cycles)

    if apply_display_window:
        cycles = apply_display_policy(cycles, account.issuer, today, settings)

    return sorted(cycles, key=lambda c: c.start_date, reverse=True)


def _best_effort_cycle(
    account: Account,
    transactions: List[Transaction],
    today: date,
    settings: CycleSettings,
) -> BillingCycle:
    window = best_effort_window(today, account.open_date, settings)
    spend = aggregate_spend(
        transactions,
        start_date=window.start_date,
        end_date=window.end_date,
        today=today,
        is_open=True,
        use_authorized_date=account.uses_authorized_date,
        issuer=account.issuer,
    )
    return BillingCycle(
        account_id=account.id,
        start_date=window.start_date,
        end_date=window.end_date,
        total_spend_cents=spend.total_spend_cents,
        transaction_count=spend.transaction_count,
        is_open=True,
        is_estimated=True,
        payment_status=PaymentStatus.CURRENT,
    )


def latest_closed_cycle(cycles: Iterable[BillingCycle]) -> Optional[BillingCycle]:
    """Most recent closed cycle, if any."""
    closed = [c for c in cycles if not c.is_open]
    if not closed:
        return None
    return max(closed, key=lambda c: c.end_date)
