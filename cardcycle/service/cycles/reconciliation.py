"""
Statement reconciliation.

Decides which statement-level figures a cycle carries:

- the open cycle carries none;
- the anchor cycle (ending on the provider's reported statement date)
  takes the reported balance and minimum payment, unless payments posted
  after the close show the statement was already settled;
- every other closed cycle uses its computed spend and an estimated
  minimum payment.

Providers typically keep reporting a statement balance for some days after
it is paid, so a settled anchor statement shows its computed spend with a
zero minimum payment instead of the stale reported figures.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import structlog

from cardcycle.domain.entities import Account, Transaction

from .aggregator import payments_after
from .settings import CycleSettings, cycle_settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StatementFigures:
    statement_balance_cents: Optional[int] = None
    minimum_payment_cents: Optional[int] = None
    payment_detected: bool = False


def estimate_minimum_payment(
    balance_cents: int,
    settings: CycleSettings = cycle_settings,
) -> int:
    """Estimated minimum payment: the greater of the floor and a percentage of balance."""
    if balance_cents <= 0:
        return 0
    return max(settings.min_payment_floor_cents, round(balance_cents * settings.min_payment_rate))


def is_statement_settled(
    reported_balance_cents: int,
    payments: Sequence[Transaction],
    settings: CycleSettings = cycle_settings,
) -> bool:
    """
    Whether payments after a close show the statement was settled.

    A single payment within tolerance of the balance always settles it.
    Otherwise the payments together must reach
    ``payment_settle_min_coverage`` of the balance, less the tolerance;
    with the default coverage of 0 any non-zero payment total settles.
    """
    amounts = [abs(p.amount_cents) for p in payments]
    total = sum(amounts)
    if total == 0:
        return False
    target = abs(reported_balance_cents)
    tolerance = settings.payment_match_tolerance_cents
    if any(abs(amount - target) <= tolerance for amount in amounts):
        return True
    return total >= target * settings.payment_settle_min_coverage - tolerance


def reconcile_cycle(
    account: Account,
    transactions: Sequence[Transaction],
    end_date: date,
    total_spend_cents: int,
    is_open: bool,
    is_anchor: bool,
    settings: CycleSettings = cycle_settings,
) -> StatementFigures:
    """
    Statement figures for one cycle.

    Args:
        account: Account snapshot with reported statement fields
        transactions: All transactions for the account
        end_date: Cycle close date
        total_spend_cents: Computed spend for the cycle
        is_open: Whether this is the open cycle
        is_anchor: Whether the cycle ends on the reported statement date
        settings: Cycle settings (uses defaults if not provided)

    Returns:
        StatementFigures for the cycle
    """
    if is_open:
        return StatementFigures()

    computed_balance = max(total_spend_cents, 0)
    if not is_anchor:
        return StatementFigures(
            statement_balance_cents=computed_balance,
            minimum_payment_cents=estimate_minimum_payment(computed_balance, settings),
        )

    reported = account.last_statement_balance_cents
    if reported is None:
        return StatementFigures(
            statement_balance_cents=computed_balance,
            minimum_payment_cents=(
                account.minimum_payment_cents
                if account.minimum_payment_cents is not None
                else estimate_minimum_payment(computed_balance, settings)
            ),
        )

    payments = payments_after(transactions, end_date, account.issuer)
    if reported != 0 and is_statement_settled(reported, payments, settings):
        logger.info(
            "payment_detected_after_close",
            account_id=str(account.id),
            close_date=end_date.isoformat(),
            reported_balance_cents=reported,
            payment_total_cents=sum(abs(p.amount_cents) for p in payments),
        )
        return StatementFigures(
            statement_balance_cents=computed_balance,
            minimum_payment_cents=0,
            payment_detected=True,
        )

    balance = abs(reported)
    minimum = account.minimum_payment_cents
    if minimum is None:
        minimum = estimate_minimum_payment(balance, settings)
    return StatementFigures(
        statement_balance_cents=balance,
        minimum_payment_cents=minimum,
    )
