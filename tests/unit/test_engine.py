"""
Unit Tests for the billing cycle engine.

End-to-end scenarios over the pure engine: an account snapshot and its
transactions in, billing cycles out. ``today`` is always injected.
"""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from cardcycle.domain.entities import (
    Account,
    BillingCycle,
    BoundaryPolicy,
    IssuerClass,
    PaymentStatus,
    Transaction,
)
from cardcycle.domain.exceptions import InvalidBoundaryPolicyError
from cardcycle.service.cycles import (
    apply_display_policy,
    calculate_billing_cycles,
    latest_closed_cycle,
)

TODAY = date(2024, 4, 1)


# =============================================================================
# Test Fixtures
# =============================================================================

def make_account(**kwargs) -> Account:
    defaults = dict(
        user_id="user_1",
        name="Sapphire Preferred",
        mask="4242",
        current_balance_cents=-12000,
        last_statement_balance_cents=50000,
        last_statement_date=date(2024, 3, 15),
        next_payment_due_date=date(2024, 4, 9),
        minimum_payment_cents=3500,
        boundary_policy=BoundaryPolicy.fixed_day(15),
        issuer=IssuerClass.CHASE,
    )
    defaults.update(kwargs)
    return Account(**defaults)


def make_txn(account: Account, posted: date, amount_cents: int, description: str = "PURCHASE"):
    return Transaction(
        id=str(uuid4()),
        account_id=account.id,
        amount_cents=amount_cents,
        posted_date=posted,
        description=description,
    )


def scenario_transactions(account: Account, include_payment: bool = True):
    """$500 in the anchor cycle, $120 of charges and a $500 payment after close."""
    txns = [
        make_txn(account, date(2024, 3, 1), 50000, "AMAZON MKTPLACE"),
        make_txn(account, date(2024, 3, 18), 5000, "WHOLE FOODS"),
        make_txn(account, date(2024, 3, 22), 4000, "SHELL OIL"),
        make_txn(account, date(2024, 3, 28), 3000, "NETFLIX"),
    ]
    if include_payment:
        txns.append(make_txn(account, date(2024, 3, 25), -50000, "AUTOPAY PAYMENT - THANK YOU"))
    return txns


def assert_contiguous(cycles):
    for newer, older in zip(cycles, cycles[1:]):
        assert newer.start_date == older.end_date + timedelta(days=1)


# =============================================================================
# Scenarios
# =============================================================================

class TestAnchoredScenario:
    """Fixed day 15 account with a statement that was paid after close."""

    def test_open_cycle(self):
        account = make_account()
        cycles = calculate_billing_cycles(account, scenario_transactions(account), TODAY)

        open_cycle = cycles[0]
        assert open_cycle.is_open
        assert (open_cycle.start_date, open_cycle.end_date) == (date(2024, 3, 16), date(2024, 4, 15))
        assert open_cycle.total_spend_cents == 12000
        assert open_cycle.transaction_count == 3
        assert open_cycle.statement_balance_cents is None
        assert open_cycle.minimum_payment_cents is None
        assert open_cycle.payment_status == PaymentStatus.CURRENT
        assert open_cycle.due_date == date(2024, 5, 9)

    def test_anchor_cycle_settled(self):
        account = make_account()
        cycles = calculate_billing_cycles(account, scenario_transactions(account), TODAY)

        anchor = cycles[1]
        assert anchor.is_anchor
        assert (anchor.start_date, anchor.end_date) == (date(2024, 2, 16), date(2024, 3, 15))
        assert anchor.payment_detected is True
        assert anchor.minimum_payment_cents == 0
        assert anchor.statement_balance_cents == 50000
        assert anchor.due_date == date(2024, 4, 9)
        assert anchor.payment_status == PaymentStatus.PAID

    def test_anchor_cycle_unpaid(self):
        account = make_account(current_balance_cents=-62000)
        cycles = calculate_billing_cycles(
            account, scenario_transactions(account, include_payment=False), TODAY
        )

        anchor = cycles[1]
        assert anchor.payment_detected is False
        assert anchor.statement_balance_cents == 50000
        assert anchor.minimum_payment_cents == 3500
        assert anchor.payment_status == PaymentStatus.DUE

    def test_display_window_is_twelve_months(self):
        account = make_account()
        cycles = calculate_billing_cycles(account, scenario_transactions(account), TODAY)

        assert len(cycles) == 13
        assert cycles[-1].end_date == date(2023, 4, 15)

    def test_older_cycles_have_computed_figures(self):
        account = make_account()
        cycles = calculate_billing_cycles(account, scenario_transactions(account), TODAY)

        for cycle in cycles[2:]:
            assert cycle.statement_balance_cents == 0
            assert cycle.minimum_payment_cents == 0
            assert cycle.is_estimated
            assert cycle.payment_status == PaymentStatus.PAID

    def test_sorted_newest_first_and_contiguous(self):
        account = make_account()
        cycles = calculate_billing_cycles(
            account, scenario_transactions(account), TODAY, apply_display_window=False
        )

        assert len(cycles) == 14
        assert cycles == sorted(cycles, key=lambda c: c.start_date, reverse=True)
        assert_contiguous(cycles)

    def test_transaction_order_does_not_matter(self):
        account = make_account()
        txns = scenario_transactions(account)

        forward = calculate_billing_cycles(account, txns, TODAY)
        backward = calculate_billing_cycles(account, list(reversed(txns)), TODAY)

        assert [(c.start_date, c.total_spend_cents) for c in forward] == [
            (c.start_date, c.total_spend_cents) for c in backward
        ]

    def test_latest_closed_cycle(self):
        account = make_account()
        cycles = calculate_billing_cycles(account, scenario_transactions(account), TODAY)

        assert latest_closed_cycle(cycles).end_date == date(2024, 3, 15)


class TestUnanchoredScenario:
    """Account with no statement date and no manual policy."""

    def test_single_best_effort_window(self):
        account = make_account(
            last_statement_date=None,
            boundary_policy=None,
            next_payment_due_date=None,
        )
        today = date(2024, 4, 10)
        txns = [make_txn(account, today - timedelta(days=d), 1000) for d in (1, 3, 5, 7, 9)]

        cycles = calculate_billing_cycles(account, txns, today)

        assert len(cycles) == 1
        window = cycles[0]
        assert window.is_open
        assert window.is_estimated
        assert (window.start_date, window.end_date) == (date(2024, 2, 11), date(2024, 4, 30))
        assert window.total_spend_cents == 5000
        assert window.transaction_count == 5
        assert window.statement_balance_cents is None
        assert window.due_date is None

    def test_manual_policy_without_statement_date(self):
        account = make_account(
            last_statement_date=None,
            next_payment_due_date=None,
            boundary_policy=BoundaryPolicy.fixed_day(10),
        )

        cycles = calculate_billing_cycles(account, [], TODAY)

        assert (cycles[0].start_date, cycles[0].end_date) == (date(2024, 3, 11), date(2024, 4, 10))
        assert not any(c.is_anchor for c in cycles)
        assert cycles[1].statement_balance_cents == 0


class TestAccountOpenDate:
    """Cycles ending before the account opened are dropped."""

    def test_filters_cycles_before_open_date(self):
        account = make_account(open_date=date(2023, 11, 20))
        cycles = calculate_billing_cycles(account, [], TODAY, apply_display_window=False)

        assert len(cycles) == 5
        assert cycles[-1].start_date == date(2023, 11, 16)
        assert all(c.end_date >= date(2023, 11, 20) for c in cycles)


class TestDynamicAnchorScenario:
    """Dynamic-anchor accounts over a full year."""

    def test_no_three_identical_lengths(self):
        account = make_account(
            last_statement_date=date(2024, 5, 15),
            next_payment_due_date=None,
            boundary_policy=BoundaryPolicy.dynamic_anchor(15, grace_days=21),
        )

        cycles = calculate_billing_cycles(account, [], date(2024, 5, 20), apply_display_window=False)
        lengths = [c.length_days for c in reversed(cycles)]

        assert len(cycles) == 14
        assert not any(a == b == c for a, b, c in zip(lengths, lengths[1:], lengths[2:]))
        assert_contiguous(cycles)

    def test_dynamic_due_dates_use_policy_grace(self):
        account = make_account(
            last_statement_date=date(2024, 5, 15),
            next_payment_due_date=None,
            boundary_policy=BoundaryPolicy.dynamic_anchor(15, grace_days=21),
        )

        cycles = calculate_billing_cycles(account, [], date(2024, 5, 20))
        anchor = cycles[1]

        assert anchor.due_date == anchor.end_date + timedelta(days=21)


class TestInvalidPolicy:
    def test_invalid_policy_raises(self):
        account = make_account(boundary_policy=BoundaryPolicy.fixed_day(0))

        with pytest.raises(InvalidBoundaryPolicyError):
            calculate_billing_cycles(account, [], TODAY)


# =============================================================================
# Display Policy
# =============================================================================

class TestDisplayPolicy:
    """Tests for per-issuer display windows."""

    def test_capital_one_limited_to_four_cycles(self):
        account = make_account(issuer=IssuerClass.CAPITAL_ONE)
        cycles = calculate_billing_cycles(account, [], TODAY)

        assert len(cycles) == 4
        assert cycles[0].is_open
        assert [c.end_date for c in cycles] == [
            date(2024, 4, 15),
            date(2024, 3, 15),
            date(2024, 2, 15),
            date(2024, 1, 15),
        ]

    def test_open_cycle_always_kept(self):
        account_id = uuid4()
        cycles = [
            BillingCycle(account_id, date(2024, 3, 16), date(2024, 4, 15), is_open=True),
            BillingCycle(account_id, date(2022, 2, 16), date(2022, 3, 15)),
        ]

        visible = apply_display_policy(cycles, IssuerClass.OTHER, TODAY)

        assert len(visible) == 1
        assert visible[0].is_open
