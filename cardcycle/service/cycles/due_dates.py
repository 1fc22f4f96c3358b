"""
Payment due date estimation.

Due dates are estimated as close date plus grace period, then snapped to
the issuer's usual due day when that day is close enough to the estimate.
"""

from datetime import date, timedelta
from typing import Optional, Tuple

from cardcycle.domain.entities import Account, BoundaryPolicyType

from .boundaries import clamp_day, shift_month
from .settings import CycleSettings, cycle_settings


def estimate_due_date(
    close_date: date,
    grace_days: int,
    target_day: Optional[int] = None,
    settings: CycleSettings = cycle_settings,
) -> date:
    """
    Estimate the payment due date for a statement close.

    Args:
        close_date: Statement close date
        grace_days: Days between close and due date
        target_day: Usual due day of month, if known
        settings: Cycle settings (uses defaults if not provided)

    Returns:
        The target day nearest to close + grace when within the confidence
        window, otherwise close + grace
    """
    expected = close_date + timedelta(days=grace_days)
    if target_day is None:
        return expected

    candidates = []
    for delta in (-1, 0, 1):
        year, month = shift_month(expected.year, expected.month, delta)
        candidates.append(clamp_day(year, month, target_day))

    nearest = min(candidates, key=lambda d: (abs((d - expected).days), d))
    if abs((nearest - expected).days) <= settings.due_date_confidence_days:
        return nearest
    return expected


def due_date_terms(
    account: Account,
    anchor: date,
    settings: CycleSettings = cycle_settings,
) -> Tuple[int, Optional[int]]:
    """
    Grace period and target due day for an account.

    Dynamic-anchor policies carry their own terms. Otherwise the gap
    between the reported statement date and next due date is reused.
    """
    policy = account.boundary_policy
    if policy is not None and policy.type == BoundaryPolicyType.DYNAMIC_ANCHOR:
        grace = policy.grace_days if policy.grace_days is not None else settings.default_grace_days
        return grace, policy.target_due_day

    due = account.next_payment_due_date
    if due is not None and due > anchor:
        return (due - anchor).days, due.day
    return settings.default_grace_days, None


def due_date_for_close(
    account: Account,
    close_date: date,
    anchor: date,
    settings: CycleSettings = cycle_settings,
) -> date:
    """Due date for a cycle closing on close_date; the reported due date wins for the anchor."""
    due = account.next_payment_due_date
    if close_date == account.last_statement_date and due is not None and due > close_date:
        return due
    grace, target = due_date_terms(account, anchor, settings)
    return estimate_due_date(close_date, grace, target, settings)
